"""Unit value objects used by native health records."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Mass:
    """Mass stored in kilograms."""

    kilograms: float

    @classmethod
    def from_kilograms(cls, value: float) -> "Mass":
        return cls(kilograms=float(value))


@dataclass(frozen=True)
class Length:
    """Length stored in meters."""

    meters: float

    @classmethod
    def from_meters(cls, value: float) -> "Length":
        return cls(meters=float(value))

    def __add__(self, other: "Length") -> "Length":
        return Length(self.meters + other.meters)


@dataclass(frozen=True)
class Energy:
    """Energy stored in kilocalories."""

    kilocalories: float

    @classmethod
    def from_kilocalories(cls, value: float) -> "Energy":
        return cls(kilocalories=float(value))

    def __add__(self, other: "Energy") -> "Energy":
        return Energy(self.kilocalories + other.kilocalories)


@dataclass(frozen=True)
class Power:
    """Power stored as kilocalories per day (basal metabolic rate)."""

    kilocalories_per_day: float

    @classmethod
    def from_kilocalories_per_day(cls, value: float) -> "Power":
        return cls(kilocalories_per_day=float(value))


@dataclass(frozen=True)
class Percentage:
    """A percentage in the 0-100 range."""

    value: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.value <= 100.0:
            raise ValueError(f"Percentage must be within 0-100, got {self.value}")
