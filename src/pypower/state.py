"""Power State Model: last-known snapshot plus switch-in-progress status."""

from dataclasses import dataclass

from pypower.errors import PowerError, ReadError, SwitchError, SwitchRejected, SwitchTimeout
from pypower.models import (
    PROFILES,
    BatterySnapshot,
    KnownProfile,
    PendingSwitch,
    ProfileKind,
    ProfileResult,
    SystemSnapshot,
)


@dataclass(slots=True, frozen=True)
class PowerView:
    """Read-only copy of the model handed to the renderer each draw."""

    battery: BatterySnapshot | None
    battery_error: ReadError | None
    active_profile: ProfileResult | None
    cursor: int
    pending_switch: PendingSwitch | None
    last_error: PowerError | None
    message: str | None
    cpu_freq_mhz: float | None

    @property
    def selected(self) -> ProfileKind:
        return PROFILES[self.cursor]


@dataclass(slots=True)
class PowerState:
    """
    The model. Owned by the controller and mutated only from its event loop.

    ``active_profile`` changes only when a snapshot is applied; a requested
    switch is tracked in ``pending_switch`` until its completion is observed.
    ``None`` fields mean "not read yet".
    """

    battery: BatterySnapshot | None = None
    battery_error: ReadError | None = None
    active_profile: ProfileResult | None = None
    cursor: int = 0
    pending_switch: PendingSwitch | None = None
    last_error: PowerError | None = None
    message: str | None = None
    cpu_freq_mhz: float | None = None
    cursor_synced: bool = False

    @property
    def selected(self) -> ProfileKind:
        return PROFILES[self.cursor]

    def view(self) -> PowerView:
        return PowerView(
            battery=self.battery,
            battery_error=self.battery_error,
            active_profile=self.active_profile,
            cursor=self.cursor,
            pending_switch=self.pending_switch,
            last_error=self.last_error,
            message=self.message,
            cpu_freq_mhz=self.cpu_freq_mhz,
        )

    def move_cursor(self, delta: int) -> None:
        """Move the cursor, clamped to the first and last profile."""
        self.cursor = min(max(self.cursor + delta, 0), len(PROFILES) - 1)

    def request_switch(self, switch_id: int, now: float) -> PendingSwitch | None:
        """
        Try to start a switch to the profile under the cursor.

        Returns:
            The new pending switch, or None when the request was rejected
            (another switch pending) or is a no-op (profile already active).
        """
        target = self.selected
        if self.pending_switch is not None:
            self.last_error = SwitchRejected(target.label)
            return None

        if self.active_profile == KnownProfile(target):
            self.message = f"{target.label} is already active"
            return None

        self.pending_switch = PendingSwitch(switch_id, target, now)
        self.last_error = None
        self.message = f"Switching to {target.label}…"
        return self.pending_switch

    def complete_switch(self, switch_id: int, error: SwitchError | None) -> bool:
        """
        Fold in a switch completion.

        Returns:
            True if it belonged to the pending switch. A completion for any
            other switch (e.g. one already timed out) leaves the model untouched.
        """
        pending = self.pending_switch
        if pending is None or pending.switch_id != switch_id:
            return False

        self.pending_switch = None
        if error is None:
            # a rejection raised while this switch was pending is moot now
            self.last_error = None
            self.message = f"Switched to {pending.target.label}"
        else:
            self.last_error = error
            self.message = None
        return True

    def expire_switch(self, now: float, timeout: float) -> PendingSwitch | None:
        """Drop the pending switch if it has waited longer than ``timeout``."""
        pending = self.pending_switch
        if pending is None or now - pending.started_at < timeout:
            return None

        self.pending_switch = None
        self.last_error = SwitchTimeout(pending.target.label, timeout)
        self.message = None
        return pending

    def apply_snapshot(self, snapshot: SystemSnapshot) -> None:
        """Replace battery and profile facts wholesale with a fresh snapshot."""
        if isinstance(snapshot.battery, ReadError):
            self.battery = None
            self.battery_error = snapshot.battery
        else:
            self.battery = snapshot.battery
            self.battery_error = None

        self.active_profile = snapshot.profile
        self.cpu_freq_mhz = snapshot.cpu_freq_mhz

        # Point the cursor at the active profile once, on the first good read
        if not self.cursor_synced and isinstance(snapshot.profile, KnownProfile):
            self.cursor = PROFILES.index(snapshot.profile.kind)
            self.cursor_synced = True
