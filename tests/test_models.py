"""Tests for pypower data models."""

import pytest

from pypower.errors import ReadError
from pypower.models import (
    DEFAULT_GOVERNORS,
    PROFILES,
    BatterySnapshot,
    ChargeStatus,
    KnownProfile,
    PendingSwitch,
    ProfileKind,
    ProfileReadFailed,
    UnrecognizedProfile,
)


def test_profiles_fixed_order():
    """Test the three profiles are listed saver-first."""
    assert PROFILES == (ProfileKind.POWER_SAVER, ProfileKind.BALANCED, ProfileKind.PERFORMANCE)


def test_profile_labels():
    """Test ProfileKind display names."""
    assert ProfileKind.POWER_SAVER.label == "Power Saver"
    assert ProfileKind.BALANCED.label == "Balanced"
    assert ProfileKind.PERFORMANCE.label == "Performance"


def test_default_governors_are_distinct():
    """Test every profile maps to its own governor and schedutil is not one of them."""
    assert set(DEFAULT_GOVERNORS) == set(ProfileKind)
    assert len(set(DEFAULT_GOVERNORS.values())) == 3
    assert "schedutil" not in DEFAULT_GOVERNORS.values()


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Charging", ChargeStatus.CHARGING),
        ("Discharging\n", ChargeStatus.DISCHARGING),
        ("Full", ChargeStatus.FULL),
        ("Not charging", ChargeStatus.UNKNOWN),
        ("", ChargeStatus.UNKNOWN),
        (None, ChargeStatus.UNKNOWN),
    ],
)
def test_charge_status_from_sysfs(raw, expected):
    """Test sysfs status strings map into the closed set."""
    assert ChargeStatus.from_sysfs(raw) is expected


def test_battery_snapshot_absent():
    """Test the absent battery carries no charge figures."""
    snapshot = BatterySnapshot.absent()
    assert snapshot.present is False
    assert snapshot.percent is None
    assert snapshot.health is None
    assert snapshot.status is ChargeStatus.UNKNOWN


def test_battery_snapshot_is_frozen():
    """Test that BatterySnapshot is immutable (frozen)."""
    snapshot = BatterySnapshot(present=True, percent=50)
    with pytest.raises(AttributeError):
        snapshot.percent = 99


def test_battery_snapshot_uses_slots():
    """Test that BatterySnapshot uses __slots__."""
    assert not hasattr(BatterySnapshot(present=False), "__dict__")


def test_profile_results_compare_by_value():
    """Test profile results are plain values."""
    assert KnownProfile(ProfileKind.BALANCED) == KnownProfile(ProfileKind.BALANCED)
    assert KnownProfile(ProfileKind.BALANCED) != KnownProfile(ProfileKind.PERFORMANCE)
    assert UnrecognizedProfile("schedutil") == UnrecognizedProfile("schedutil")
    error = ReadError("governor", "denied")
    assert ProfileReadFailed(error).error is error


def test_pending_switch_fields():
    """Test PendingSwitch holds id, target and start time."""
    pending = PendingSwitch(3, ProfileKind.PERFORMANCE, 12.5)
    assert pending.switch_id == 3
    assert pending.target is ProfileKind.PERFORMANCE
    assert pending.started_at == 12.5
