"""System Reader for pypower: battery and governor facts from sysfs."""

import logging
from collections.abc import Mapping
from pathlib import Path

import psutil

from pypower.errors import ReadError
from pypower.models import (
    DEFAULT_GOVERNORS,
    BatterySnapshot,
    ChargeStatus,
    KnownProfile,
    ProfileKind,
    ProfileReadFailed,
    ProfileResult,
    SystemSnapshot,
    UnrecognizedProfile,
)

log = logging.getLogger(__name__)


def _read_text(path: Path) -> str | None:
    """Read and strip a sysfs attribute, None if it cannot be read."""
    try:
        return path.read_text(errors="ignore").strip()
    except OSError:
        return None


def _read_float(path: Path) -> float | None:
    text = _read_text(path)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _clamp_percent(value: float) -> int:
    return int(min(max(value, 0.0), 100.0))


class SystemReader:
    """
    Reads battery and governor state from the kernel's sysfs hierarchy.

    Holds no state between calls: every ``read()`` is an independent snapshot.
    Failures are returned as values, never raised, and never retried here.
    """

    def __init__(
        self,
        power_supply_root: Path = Path("/sys/class/power_supply"),
        governor_path: Path = Path("/sys/devices/system/cpu/cpu0/cpufreq/scaling_governor"),
        governors: Mapping[ProfileKind, str] = DEFAULT_GOVERNORS,
    ) -> None:
        self._power_supply_root = power_supply_root
        self._governor_path = governor_path
        self._profiles_by_governor = {gov: kind for kind, gov in governors.items()}

    def read(self) -> SystemSnapshot:
        """Take one snapshot of battery, profile and CPU frequency."""
        try:
            battery = self.read_battery()
        except Exception as exc:
            log.exception("Battery read failed unexpectedly")
            battery = ReadError("battery", str(exc))

        try:
            profile = self.read_profile()
        except Exception as exc:
            log.exception("Governor read failed unexpectedly")
            profile = ProfileReadFailed(ReadError("governor", str(exc)))

        return SystemSnapshot(battery=battery, profile=profile, cpu_freq_mhz=self.read_cpu_freq())

    def read_battery(self) -> BatterySnapshot | ReadError:
        """
        Read the first battery device.

        No battery device is a valid result (``present=False``), distinct from a
        ReadError, which means a device exists but could not be read.
        """
        root = self._power_supply_root
        if not root.exists():
            return BatterySnapshot.absent()

        try:
            entries = sorted(root.iterdir())
        except OSError as exc:
            log.warning("Cannot list %s: %s", root, exc)
            return ReadError("battery", str(exc))

        device = next((d for d in entries if _read_text(d / "type") == "Battery"), None)
        if device is None:
            return BatterySnapshot.absent()

        if _read_text(device / "present") == "0":
            return BatterySnapshot(present=False, name=device.name)

        try:
            capacity = int((device / "capacity").read_text().strip())
        except (OSError, ValueError) as exc:
            log.warning("Cannot read capacity of %s: %s", device.name, exc)
            return ReadError("battery", f"{device.name} capacity: {exc}")

        status = ChargeStatus.from_sysfs(_read_text(device / "status"))

        return BatterySnapshot(
            present=True,
            name=device.name,
            percent=_clamp_percent(capacity),
            health=self._read_health(device),
            status=status,
            minutes_remaining=self._estimate_minutes(device, status),
        )

    def _read_health(self, device: Path) -> int | None:
        """Full capacity against design capacity, in percent."""
        for prefix in ("energy", "charge"):
            full = _read_float(device / f"{prefix}_full")
            design = _read_float(device / f"{prefix}_full_design")
            if full is not None and design:
                return _clamp_percent(full / design * 100.0)
        return None

    def _estimate_minutes(self, device: Path, status: ChargeStatus) -> int | None:
        """Minutes until full (charging) or empty (discharging)."""
        if status not in (ChargeStatus.CHARGING, ChargeStatus.DISCHARGING):
            return None

        # energy_* pairs with power_now (uWh / uW), charge_* with current_now (uAh / uA)
        for prefix, rate_name in (("energy", "power_now"), ("charge", "current_now")):
            rate = _read_float(device / rate_name)
            now = _read_float(device / f"{prefix}_now")
            if not rate or now is None:
                continue
            # some drivers report a negative rate while discharging
            rate = abs(rate)
            if status is ChargeStatus.CHARGING:
                full = _read_float(device / f"{prefix}_full")
                if full is None:
                    continue
                remaining = max(full - now, 0.0)
            else:
                remaining = now
            return int(remaining / rate * 60)
        return None

    def read_profile(self) -> ProfileResult:
        """Read the active governor and map it onto a profile."""
        try:
            raw = self._governor_path.read_text().strip()
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Cannot read governor from %s: %s", self._governor_path, exc)
            return ProfileReadFailed(ReadError("governor", str(exc)))

        if not raw:
            return ProfileReadFailed(ReadError("governor", "empty governor"))

        kind = self._profiles_by_governor.get(raw)
        if kind is None:
            return UnrecognizedProfile(raw)
        return KnownProfile(kind)

    def read_cpu_freq(self) -> float | None:
        """Current CPU frequency in MHz, None where psutil cannot report it."""
        try:
            freq = psutil.cpu_freq()
        except (OSError, NotImplementedError, RuntimeError):
            return None
        if freq is None or not freq.current:
            return None
        return float(freq.current)
