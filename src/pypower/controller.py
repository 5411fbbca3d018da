"""Controller for pypower: owns the model and is its only writer."""

import logging
import time
from collections.abc import Callable
from queue import Empty, Queue

from pypower.config import Settings
from pypower.errors import ReadError, SwitchRejected
from pypower.events import (
    Action,
    ActionEvent,
    Event,
    RefreshCompleted,
    SwitchCompleted,
    Tick,
)
from pypower.models import ProfileReadFailed, SystemSnapshot
from pypower.reader import SystemReader
from pypower.state import PowerState, PowerView
from pypower.switcher import CpupowerBackend, Job, ProfileBackend, ProfileSwitcher, spawn_daemon

log = logging.getLogger(__name__)


class PowerController:
    """
    Single event-processing point for pypower.

    Keypresses and timer ticks are dispatched directly from the UI loop.
    Reads and switch commands run as background jobs whose results come back
    through a thread-safe Queue; ``pump()`` drains it on the UI loop, so the
    model is never touched from another thread.

    Overlapping refreshes are superseded: each request takes a new sequence
    number and only the result carrying the latest number is applied.
    The periodic timer supersedes too, so if every read takes longer than
    ``refresh_interval`` no result ever lands and the model keeps its last
    snapshot; each such supersede is logged as a warning.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        reader: SystemReader | None = None,
        backend: ProfileBackend | None = None,
        spawn: Callable[[Job], None] = spawn_daemon,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the PowerController.

        Args:
            settings: Runtime settings. Defaults to ``Settings()``.
            reader: System Reader. Defaults to one built from ``settings``.
            backend: Switch backend. Defaults to the cpupower command.
            spawn: Runs a background job. Defaults to a daemon thread per job.
            clock: Monotonic time source.
        """
        self._settings = settings or Settings()
        self._events: Queue[Event] = Queue()
        self._reader = reader or SystemReader(
            self._settings.power_supply_root,
            self._settings.governor_path,
            self._settings.governors,
        )
        self._switcher = ProfileSwitcher(
            backend or CpupowerBackend(self._settings.switch_command, self._settings.governors),
            self._events,
            spawn,
        )
        self._spawn = spawn
        self._clock = clock
        self._state = PowerState()
        self._refresh_seq = 0
        self._applied_seq = 0
        self._switch_seq = 0
        self._last_refresh_at: float | None = None
        self._running = True

    @property
    def running(self) -> bool:
        """False once the operator has quit."""
        return self._running

    @property
    def refresh_seq(self) -> int:
        """Sequence number of the most recent refresh request."""
        return self._refresh_seq

    def view(self) -> PowerView:
        """Read-only view of the model for the renderer."""
        return self._state.view()

    def start(self) -> None:
        """Kick off the first refresh."""
        self.dispatch(Tick(self._clock()))

    def pump(self) -> int:
        """
        Apply every queued background result, then run a timer tick.

        Returns:
            Number of events processed, the tick included.
        """
        processed = 0
        while True:
            try:
                event = self._events.get_nowait()
            except Empty:
                break
            self.dispatch(event)
            processed += 1

        self.dispatch(Tick(self._clock()))
        return processed + 1

    def dispatch(self, event: Event) -> None:
        """Process one event. Never raises; after quit, does nothing."""
        if not self._running:
            return
        try:
            self._handle(event)
        except Exception:
            log.exception("Error while processing %r", event)

    def _handle(self, event: Event) -> None:
        if isinstance(event, ActionEvent):
            self._handle_action(event.action)
        elif isinstance(event, Tick):
            self._handle_tick(event.now)
        elif isinstance(event, RefreshCompleted):
            self._handle_refresh(event)
        elif isinstance(event, SwitchCompleted):
            self._handle_switch(event)
        else:
            log.warning("Unknown event %r", event)

    def _handle_action(self, action: Action) -> None:
        if action is Action.CURSOR_UP:
            self._state.move_cursor(-1)
        elif action is Action.CURSOR_DOWN:
            self._state.move_cursor(1)
        elif action is Action.SELECT:
            self._select()
        elif action is Action.REFRESH:
            self.request_refresh()
        elif action is Action.QUIT:
            log.info("Quit requested")
            self._running = False

    def _handle_tick(self, now: float) -> None:
        expired = self._state.expire_switch(now, self._settings.switch_timeout)
        if expired is not None:
            log.warning(
                "Switch #%d to %s timed out after %.1fs",
                expired.switch_id,
                expired.target.label,
                self._settings.switch_timeout,
            )

        if (
            self._last_refresh_at is None
            or now - self._last_refresh_at >= self._settings.refresh_interval
        ):
            if self._applied_seq < self._refresh_seq:
                log.warning(
                    "Refresh #%d still outstanding after %.1fs, superseding it",
                    self._refresh_seq,
                    now - self._last_refresh_at,
                )
            self.request_refresh(now)

    def _handle_refresh(self, event: RefreshCompleted) -> None:
        if event.seq != self._refresh_seq:
            log.debug("Discarding stale refresh #%d (latest #%d)", event.seq, self._refresh_seq)
            return

        self._applied_seq = event.seq
        snapshot = event.snapshot
        if isinstance(snapshot.battery, ReadError):
            log.debug("Battery read failed: %s", snapshot.battery)
        if isinstance(snapshot.profile, ProfileReadFailed):
            log.debug("Governor read failed: %s", snapshot.profile.error)
        self._state.apply_snapshot(snapshot)

    def _handle_switch(self, event: SwitchCompleted) -> None:
        if not self._state.complete_switch(event.switch_id, event.error):
            log.warning(
                "Switch #%d to %s completed after it was given up on (%s)",
                event.switch_id,
                event.target.label,
                "ok" if event.error is None else event.error,
            )
            self.request_refresh()
            return

        if event.error is None:
            log.info("Switch #%d to %s succeeded", event.switch_id, event.target.label)
            # Confirm through a fresh read instead of trusting the target
            self.request_refresh()
        else:
            log.warning("Switch #%d to %s failed: %s", event.switch_id, event.target.label, event.error)

    def _select(self) -> None:
        switch_id = self._switch_seq + 1
        pending = self._state.request_switch(switch_id, self._clock())
        if pending is None:
            if isinstance(self._state.last_error, SwitchRejected):
                log.info("%s", self._state.last_error)
            return

        self._switch_seq = switch_id
        log.info("Switch #%d to %s requested", switch_id, pending.target.label)
        self._switcher.request_switch(pending)

    def request_refresh(self, now: float | None = None) -> int:
        """
        Start a background read, superseding any read still in flight.

        Returns:
            The sequence number of the new request.
        """
        self._refresh_seq += 1
        seq = self._refresh_seq
        self._last_refresh_at = self._clock() if now is None else now

        def job() -> None:
            try:
                snapshot = self._reader.read()
            except Exception as exc:
                log.exception("System read #%d failed", seq)
                snapshot = SystemSnapshot(
                    battery=ReadError("battery", str(exc)),
                    profile=ProfileReadFailed(ReadError("governor", str(exc))),
                )
            self._events.put(RefreshCompleted(seq, snapshot))

        self._spawn(job)
        return seq
