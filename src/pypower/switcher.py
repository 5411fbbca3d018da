"""Profile Switcher for pypower."""

import logging
import subprocess
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future
from queue import Queue

from pypower.errors import SwitchError
from pypower.events import Event, SwitchCompleted
from pypower.models import DEFAULT_GOVERNORS, PendingSwitch, ProfileKind

log = logging.getLogger(__name__)

Job = Callable[[], None]


def spawn_daemon(job: Job) -> None:
    """Run a job on a fresh daemon thread."""
    threading.Thread(target=job, daemon=True, name="pypower-worker").start()


class ProfileBackend(ABC):
    """Something that can make a profile the active one."""

    @abstractmethod
    def apply(self, target: ProfileKind) -> None:
        """
        Switch the host to ``target``. Blocks until done.

        Raises:
            SwitchError: The switch failed or could not be attempted.
        """


class CpupowerBackend(ProfileBackend):
    """
    Switches the governor by running an external privileged command.

    Only the exit status is interpreted; stdout is ignored and stderr is logged.
    No timeout is imposed here, the controller owns that.
    """

    def __init__(
        self,
        command: Sequence[str] = ("sudo", "-n", "cpupower", "frequency-set", "-g", "{governor}"),
        governors: Mapping[ProfileKind, str] = DEFAULT_GOVERNORS,
    ) -> None:
        self._command = tuple(command)
        self._governors = dict(governors)

    def build_command(self, target: ProfileKind) -> list[str]:
        """Expand the argv template for ``target``."""
        governor = self._governors[target]
        return [arg.replace("{governor}", governor) for arg in self._command]

    def apply(self, target: ProfileKind) -> None:
        argv = self.build_command(target)
        log.info("Running %s", " ".join(argv))
        try:
            result = subprocess.run(argv, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise SwitchError(f"Cannot run {argv[0]}: {exc}") from exc

        if result.returncode != 0:
            log.warning(
                "%s exited with status %d: %s",
                argv[0],
                result.returncode,
                (result.stderr or "").strip(),
            )
            raise SwitchError(
                f"{' '.join(argv[:3])} exited with status {result.returncode} "
                "(passwordless sudo for cpupower required)",
                exit_status=result.returncode,
            )


class ProfileSwitcher:
    """
    Runs switch requests off the UI thread.

    Completion is reported twice: the returned future resolves, and a
    ``SwitchCompleted`` event is pushed onto the controller's queue.
    """

    def __init__(
        self,
        backend: ProfileBackend,
        completions: "Queue[Event]",
        spawn: Callable[[Job], None] = spawn_daemon,
    ) -> None:
        self._backend = backend
        self._completions = completions
        self._spawn = spawn

    def request_switch(self, pending: PendingSwitch) -> "Future[None]":
        """Start switching to ``pending.target`` and return a handle for the outcome."""
        handle: Future[None] = Future()
        handle.set_running_or_notify_cancel()

        def job() -> None:
            error: SwitchError | None = None
            try:
                self._backend.apply(pending.target)
            except SwitchError as exc:
                error = exc
            except Exception as exc:
                log.exception("Switch to %s failed unexpectedly", pending.target.label)
                error = SwitchError(f"Unexpected failure: {exc}")

            if error is None:
                handle.set_result(None)
            else:
                handle.set_exception(error)
            self._completions.put(SwitchCompleted(pending.switch_id, pending.target, error))

        self._spawn(job)
        return handle
