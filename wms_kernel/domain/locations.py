"""
Locations -- closed variants for physical bin addresses.

Responsibility:
    Model a bin address as ``(rack, bay, level)`` where the level is either a
    bounded integer or the distinguished ground tag, and render/parse the
    canonical ``RACK-BB-LEVEL`` bin code.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - Numeric levels are within 1..MAX_LEVEL; bays within 1..MAX_BAY.
    - The ground level orders below every numeric level.
    - ``bin_code`` always zero-pads the bay to two digits.

Failure modes:
    - ValueError from Level/Location construction on out-of-range values.
    - InvalidBinCodeError from ``parse_bin_code`` on malformed text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from wms_kernel.exceptions import InvalidBinCodeError

GROUND_LABEL = "Floor"
MAX_LEVEL = 99
MAX_BAY = 999


class ZoneClass(str, Enum):
    """Allocation class of a storage zone, most preferred to drain first."""

    STAGING = "staging"
    RESERVE = "reserve"
    STANDARD = "standard"

    @property
    def rank(self) -> int:
        return _ZONE_CLASS_RANK[self]


_ZONE_CLASS_RANK = {
    ZoneClass.STAGING: 0,
    ZoneClass.RESERVE: 1,
    ZoneClass.STANDARD: 2,
}


@dataclass(frozen=True, slots=True)
class Level:
    """
    A rack level: a number in 1..MAX_LEVEL, or ground when ``number`` is None.

    Ground renders as ``"Floor"`` and sorts below level 1.
    """

    number: int | None = None

    def __post_init__(self) -> None:
        if self.number is not None:
            if isinstance(self.number, bool) or not isinstance(self.number, int):
                raise ValueError(f"Level number must be an int, got {self.number!r}")
            if not 1 <= self.number <= MAX_LEVEL:
                raise ValueError(
                    f"Level must be between 1 and {MAX_LEVEL}, got {self.number}"
                )

    @classmethod
    def ground(cls) -> Level:
        return cls(None)

    @classmethod
    def parse(cls, value: Level | str | int) -> Level:
        """Parse ``"Floor"`` (any case), a numeric string, or an int."""
        if isinstance(value, Level):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        text = str(value).strip()
        if text.lower() == GROUND_LABEL.lower():
            return cls.ground()
        if not text.isdigit():
            raise ValueError(f"Unrecognised level: {value!r}")
        return cls(int(text))

    @property
    def is_ground(self) -> bool:
        return self.number is None

    @property
    def ordinal(self) -> int:
        """0 for ground, otherwise the level number."""
        return 0 if self.number is None else self.number

    def __str__(self) -> str:
        return GROUND_LABEL if self.number is None else str(self.number)


@dataclass(frozen=True, slots=True)
class Location:
    """
    Immutable bin address.

    ``level`` may be given as a Level, a numeric string, an int or
    ``"Floor"``; it is normalised to a Level on construction.
    """

    rack: str
    bay: int
    level: Level

    def __post_init__(self) -> None:
        rack = str(self.rack).strip() if self.rack is not None else ""
        if not rack:
            raise ValueError("Location rack is required")
        object.__setattr__(self, "rack", rack)

        if isinstance(self.bay, bool):
            raise ValueError(f"Invalid bay: {self.bay!r}")
        try:
            bay = int(self.bay)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid bay: {self.bay!r}") from e
        if not 1 <= bay <= MAX_BAY:
            raise ValueError(f"Bay must be between 1 and {MAX_BAY}, got {bay}")
        object.__setattr__(self, "bay", bay)
        object.__setattr__(self, "level", Level.parse(self.level))

    @classmethod
    def of(cls, rack: str, bay: int | str, level: Level | str | int) -> Location:
        """Factory method for creating a Location."""
        return cls(rack=rack, bay=bay, level=level)

    @property
    def bin_code(self) -> str:
        """Canonical ``RACK-BB-LEVEL`` code, e.g. ``A-01-3``."""
        return f"{self.rack}-{self.bay:02d}-{self.level}"

    @property
    def legacy_key(self) -> str:
        """Unpadded ``RACK-B-LEVEL`` form used in ledger location text."""
        return f"{self.rack}-{self.bay}-{self.level}"

    def to_dict(self) -> dict[str, object]:
        return {"rack": self.rack, "bay": self.bay, "level": str(self.level)}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Location:
        return cls(rack=data["rack"], bay=data["bay"], level=data["level"])

    def __str__(self) -> str:
        return self.bin_code


def parse_bin_code(text: str) -> Location:
    """
    Parse ``RACK-BAY-LEVEL`` into a Location.

    The bay may be padded (``A-01-3``) or not (``A-1-3``). The rack is
    everything before the last two dashes, so legacy racks such as
    ``STG-01`` still parse.

    Raises:
        InvalidBinCodeError: if the text does not follow the grammar.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidBinCodeError(str(text), "empty")
    parts = text.strip().rsplit("-", 2)
    if len(parts) != 3:
        raise InvalidBinCodeError(text, "expected RACK-BAY-LEVEL")
    rack, bay, level = parts
    if not bay.isdigit():
        raise InvalidBinCodeError(text, f"bay {bay!r} is not a number")
    try:
        return Location(rack=rack, bay=int(bay), level=level)
    except ValueError as e:
        raise InvalidBinCodeError(text, str(e)) from e


def format_locations(locations: tuple[Location, ...] | list[Location], sep: str = "|") -> str:
    """Join bin codes, e.g. ``A-01-1|B-02-Floor``."""
    return sep.join(loc.bin_code for loc in locations)


def parse_locations(text: str, sep: str = "|") -> tuple[Location, ...]:
    """Inverse of ``format_locations``; blank text yields an empty tuple."""
    if not text or not text.strip():
        return ()
    return tuple(parse_bin_code(part) for part in text.split(sep) if part.strip())


@dataclass(frozen=True, slots=True)
class ZoneLayout:
    """
    One row of the zone-configuration table: ``zone -> {bay_count, levels}``.

    ``levels`` keeps the configured order (top level first in the default
    warehouse) so catalog generation is deterministic.
    """

    name: str
    bay_count: int
    levels: tuple[Level, ...]
    zone_class: ZoneClass = ZoneClass.STANDARD

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Zone name is required")
        if not 1 <= self.bay_count <= MAX_BAY:
            raise ValueError(
                f"Zone {self.name}: bay count must be between 1 and {MAX_BAY}, "
                f"got {self.bay_count}"
            )
        levels = tuple(Level.parse(lv) for lv in self.levels)
        if not levels:
            raise ValueError(f"Zone {self.name}: at least one level is required")
        if len(set(levels)) != len(levels):
            raise ValueError(f"Zone {self.name}: duplicate levels {levels}")
        object.__setattr__(self, "levels", levels)
        object.__setattr__(self, "zone_class", ZoneClass(self.zone_class))

    def locations(self) -> list[Location]:
        """Every location in this zone, bay-major in configured level order."""
        return [
            Location(rack=self.name, bay=bay, level=level)
            for bay in range(1, self.bay_count + 1)
            for level in self.levels
        ]
