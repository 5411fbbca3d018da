"""Events consumed by the controller.

Keypresses, timer ticks and background completions all become one of these and
go through ``PowerController.dispatch``.
"""

from dataclasses import dataclass
from enum import Enum

from pypower.errors import SwitchError
from pypower.models import ProfileKind, SystemSnapshot


class Action(Enum):
    """Operator actions bound to keys."""

    CURSOR_UP = "cursor_up"
    CURSOR_DOWN = "cursor_down"
    SELECT = "select"
    REFRESH = "refresh"
    QUIT = "quit"


@dataclass(slots=True, frozen=True)
class ActionEvent:
    action: Action


@dataclass(slots=True, frozen=True)
class Tick:
    """Periodic timer tick; ``now`` is a monotonic timestamp."""

    now: float


@dataclass(slots=True, frozen=True)
class RefreshCompleted:
    seq: int
    snapshot: SystemSnapshot


@dataclass(slots=True, frozen=True)
class SwitchCompleted:
    """Outcome of one switch command; ``error`` is None on success."""

    switch_id: int
    target: ProfileKind
    error: SwitchError | None = None


Event = ActionEvent | Tick | RefreshCompleted | SwitchCompleted
