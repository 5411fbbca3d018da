"""Shared fakes for pypower tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from pypower.config import Settings
from pypower.controller import PowerController
from pypower.errors import SwitchError
from pypower.models import (
    BatterySnapshot,
    ChargeStatus,
    KnownProfile,
    ProfileKind,
    ProfileResult,
    SystemSnapshot,
)
from pypower.switcher import ProfileBackend


def snapshot(
    profile: ProfileResult = KnownProfile(ProfileKind.BALANCED),
    battery: BatterySnapshot | None = None,
) -> SystemSnapshot:
    """Build a SystemSnapshot with a healthy battery by default."""
    if battery is None:
        battery = BatterySnapshot(
            present=True,
            name="BAT0",
            percent=80,
            health=95,
            status=ChargeStatus.DISCHARGING,
            minutes_remaining=150,
        )
    return SystemSnapshot(battery=battery, profile=profile, cpu_freq_mhz=1800.0)


class FakeReader:
    """Returns queued snapshots in call order, then repeats the last one."""

    def __init__(self, *snapshots: SystemSnapshot) -> None:
        self.snapshots = list(snapshots) or [snapshot()]
        self.calls = 0

    def read(self) -> SystemSnapshot:
        self.calls += 1
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]


class FakeBackend(ProfileBackend):
    """Records switch targets instead of running a privileged command."""

    def __init__(self, error: SwitchError | None = None) -> None:
        self.error = error
        self.calls: list[ProfileKind] = []

    def apply(self, target: ProfileKind) -> None:
        self.calls.append(target)
        if self.error is not None:
            raise self.error


class ManualSpawn:
    """Collects background jobs so tests decide when (and in what order) they run."""

    def __init__(self) -> None:
        self.jobs: list[Callable[[], None]] = []

    def __call__(self, job: Callable[[], None]) -> None:
        self.jobs.append(job)

    def run_next(self) -> None:
        self.jobs.pop(0)()

    def run_all(self) -> None:
        while self.jobs:
            self.run_next()


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def spawn() -> ManualSpawn:
    return ManualSpawn()


@pytest.fixture
def settings() -> Settings:
    return Settings(refresh_interval=5.0, switch_timeout=10.0)


@pytest.fixture
def make_controller(settings, spawn, clock):
    """Factory for a controller wired to fakes."""

    def factory(
        reader: FakeReader | None = None,
        backend: FakeBackend | None = None,
    ) -> PowerController:
        return PowerController(
            settings=settings,
            reader=reader or FakeReader(),
            backend=backend or FakeBackend(),
            spawn=spawn,
            clock=clock,
        )

    return factory


def write_attrs(device: Path, **attrs: object) -> Path:
    """Create a fake sysfs device directory with one file per attribute."""
    device.mkdir(parents=True, exist_ok=True)
    for name, value in attrs.items():
        (device / name).write_text(f"{value}\n")
    return device
