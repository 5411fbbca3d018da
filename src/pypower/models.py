"""Data models for pypower."""

from dataclasses import dataclass
from enum import Enum

from pypower.errors import ReadError


class ProfileKind(Enum):
    """The three selectable CPU power profiles, in display order."""

    POWER_SAVER = "power_saver"
    BALANCED = "balanced"
    PERFORMANCE = "performance"

    @property
    def label(self) -> str:
        """Human-readable profile name."""
        return _LABELS[self]


_LABELS = {
    ProfileKind.POWER_SAVER: "Power Saver",
    ProfileKind.BALANCED: "Balanced",
    ProfileKind.PERFORMANCE: "Performance",
}

PROFILES: tuple[ProfileKind, ...] = tuple(ProfileKind)

DEFAULT_GOVERNORS: dict[ProfileKind, str] = {
    ProfileKind.POWER_SAVER: "powersave",
    ProfileKind.BALANCED: "ondemand",
    ProfileKind.PERFORMANCE: "performance",
}


class ChargeStatus(Enum):
    """Battery charging status as reported by the kernel."""

    CHARGING = "charging"
    DISCHARGING = "discharging"
    FULL = "full"
    UNKNOWN = "unknown"

    @classmethod
    def from_sysfs(cls, raw: str | None) -> "ChargeStatus":
        """Map a sysfs ``status`` string; anything unexpected is UNKNOWN."""
        if raw is None:
            return cls.UNKNOWN
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(slots=True, frozen=True)
class BatterySnapshot:
    """Immutable point-in-time read of one battery device."""

    present: bool
    name: str | None = None
    percent: int | None = None  # 0 - 100, None if no battery
    health: int | None = None  # 0 - 100, None if unknown
    status: ChargeStatus = ChargeStatus.UNKNOWN
    minutes_remaining: int | None = None

    @classmethod
    def absent(cls) -> "BatterySnapshot":
        """Snapshot for a host with no battery device."""
        return cls(present=False)


@dataclass(slots=True, frozen=True)
class KnownProfile:
    """The governor maps to one of the three profiles."""

    kind: ProfileKind


@dataclass(slots=True, frozen=True)
class UnrecognizedProfile:
    """The governor was read but maps to none of the three profiles."""

    raw: str


@dataclass(slots=True, frozen=True)
class ProfileReadFailed:
    """The governor could not be read at all."""

    error: ReadError


ProfileResult = KnownProfile | UnrecognizedProfile | ProfileReadFailed


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Result of one System Reader call; both halves fail independently."""

    battery: BatterySnapshot | ReadError
    profile: ProfileResult
    cpu_freq_mhz: float | None = None


@dataclass(slots=True, frozen=True)
class PendingSwitch:
    """A requested but not yet confirmed profile change."""

    switch_id: int
    target: ProfileKind
    started_at: float  # monotonic clock
