"""
Sequencing chemistry identifiers taken from BAM read-group tags.

PacBio read groups carry their chemistry in the ``DS`` tag, e.g.::

    READTYPE=SUBREAD;BINDINGKIT=100-619-300;SEQUENCINGKIT=100-620-000;BASECALLERVERSION=2.1.0.0.1234
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def parse_read_group_description(description: str) -> dict[str, str]:
    """
    Parse a read-group ``DS`` tag into a dictionary.

    Example:
        >>> parse_read_group_description("READTYPE=SUBREAD;BINDINGKIT=100-619-300")
        {'READTYPE': 'SUBREAD', 'BINDINGKIT': '100-619-300'}
    """
    fields = {}
    for item in description.split(";"):
        item = item.strip()
        if not item:
            continue
        key, _, value = item.partition("=")
        fields[key.strip()] = value.strip()
    return fields


def _parse_kit(kit: str) -> int:
    digits = kit.strip().replace("-", "")
    if not digits.isdigit():
        raise ValueError(f"Invalid kit part number: {kit!r}")
    return int(digits)


def _parse_version(change_list_id: str) -> tuple[int, int]:
    parts = change_list_id.strip().split(".")
    if len(parts) < 2 or not (parts[0].isdigit() and parts[1].isdigit()):
        raise ValueError(f"Invalid change list id: {change_list_id!r}")
    return int(parts[0]), int(parts[1])


@dataclass(slots=True)
class ChemistryTriple:
    """Binding kit, sequencing kit and basecaller version of a read group."""

    binding_kit: int = 0
    sequencing_kit: int = 0
    major_version: int = 0
    minor_version: int = 0

    @classmethod
    def null(cls) -> ChemistryTriple:
        return cls()

    @classmethod
    def from_strings(
        cls, binding_kit: str, sequencing_kit: str, change_list_id: str
    ) -> ChemistryTriple:
        """
        Build a triple from the raw tag values.

        Raises:
            ValueError: If any of the values cannot be parsed
        """
        triple = cls()
        if not triple.set_values(binding_kit, sequencing_kit, change_list_id):
            raise ValueError(
                f"Cannot parse chemistry: binding kit {binding_kit!r}, "
                f"sequencing kit {sequencing_kit!r}, version {change_list_id!r}"
            )
        return triple

    @classmethod
    def from_read_group(cls, description: str) -> ChemistryTriple:
        """Build a triple from a read-group ``DS`` tag."""
        fields = parse_read_group_description(description)
        return cls.from_strings(
            fields.get("BINDINGKIT", ""),
            fields.get("SEQUENCINGKIT", ""),
            fields.get("BASECALLERVERSION", ""),
        )

    def is_null(self) -> bool:
        return (
            self.binding_kit == 0
            and self.sequencing_kit == 0
            and self.major_version == 0
            and self.minor_version == 0
        )

    def set_null(self) -> None:
        self.binding_kit = 0
        self.sequencing_kit = 0
        self.major_version = 0
        self.minor_version = 0

    def set_values(
        self, binding_kit: str, sequencing_kit: str, change_list_id: str
    ) -> bool:
        """
        Parse and store the tag values.

        Returns:
            True on success. On failure the triple is left unchanged.
        """
        try:
            binding = _parse_kit(binding_kit)
            sequencing = _parse_kit(sequencing_kit)
            major, minor = _parse_version(change_list_id)
        except ValueError as e:
            logger.debug(f"Rejected chemistry values: {e}")
            return False

        self.binding_kit = binding
        self.sequencing_kit = sequencing
        self.major_version = major
        self.minor_version = minor
        return True

    def __str__(self) -> str:
        return (
            f"{self.binding_kit}/{self.sequencing_kit}/"
            f"{self.major_version}.{self.minor_version}"
        )
