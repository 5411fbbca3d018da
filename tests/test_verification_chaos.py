"""Verification Test: Chaos - random event interleavings against the controller.

Keypresses, timer ticks, refresh completions and switch completions are fired
in random order (background jobs finishing out of order, switches failing,
switches timing out) and the model invariants are checked after every step:

- the cursor always indexes one of the three profiles
- at most one switch is pending, and only accepted requests reach the backend
- active_profile only ever holds a value some read actually returned
- the controller never raises
"""

import random

import pytest

from conftest import FakeBackend, FakeClock, ManualSpawn, snapshot
from pypower.config import Settings
from pypower.controller import PowerController
from pypower.errors import SwitchError
from pypower.events import Action, ActionEvent
from pypower.models import KnownProfile, ProfileKind, UnrecognizedProfile

READ_RESULTS = [
    snapshot(KnownProfile(ProfileKind.POWER_SAVER)),
    snapshot(KnownProfile(ProfileKind.BALANCED)),
    snapshot(KnownProfile(ProfileKind.PERFORMANCE)),
    snapshot(UnrecognizedProfile("schedutil")),
]


class RandomReader:
    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def read(self):
        return self._rng.choice(READ_RESULTS)


class FlakyBackend(FakeBackend):
    def __init__(self, rng: random.Random) -> None:
        super().__init__()
        self._rng = rng

    def apply(self, target):
        self.calls.append(target)
        if self._rng.random() < 0.3:
            raise SwitchError("exited with status 1", exit_status=1)


@pytest.mark.parametrize("seed", range(25))
def test_random_event_sequences_keep_invariants(seed):
    rng = random.Random(seed)
    clock = FakeClock()
    spawn = ManualSpawn()
    backend = FlakyBackend(rng)
    controller = PowerController(
        settings=Settings(refresh_interval=3.0, switch_timeout=7.0),
        reader=RandomReader(rng),
        backend=backend,
        spawn=spawn,
        clock=clock,
    )
    controller.start()

    actions = [Action.CURSOR_UP, Action.CURSOR_DOWN, Action.SELECT, Action.REFRESH]
    accepted = 0
    allowed_profiles = {result.profile for result in READ_RESULTS} | {None}

    for _ in range(300):
        roll = rng.random()
        if roll < 0.45:
            before = controller.view().pending_switch
            controller.dispatch(ActionEvent(rng.choice(actions)))
            after = controller.view().pending_switch
            if before is None and after is not None:
                accepted += 1
            if before is not None:
                assert after is before
        elif roll < 0.75 and spawn.jobs:
            # finish a random background job, not necessarily the oldest
            spawn.jobs.pop(rng.randrange(len(spawn.jobs)))()
        elif roll < 0.9:
            clock.advance(rng.uniform(0.1, 4.0))
            controller.pump()
        else:
            controller.pump()

        view = controller.view()
        assert 0 <= view.cursor <= 2
        assert view.active_profile in allowed_profiles
        assert len(backend.calls) <= accepted

    spawn.run_all()
    controller.pump()
    assert len(backend.calls) == accepted
    assert controller.running


@pytest.mark.parametrize("seed", range(10))
def test_navigation_only_sequences_stay_in_range(seed):
    rng = random.Random(seed)
    controller = PowerController(
        reader=RandomReader(rng),
        backend=FakeBackend(),
        spawn=ManualSpawn(),
        clock=FakeClock(),
    )
    for _ in range(500):
        controller.dispatch(ActionEvent(rng.choice([Action.CURSOR_UP, Action.CURSOR_DOWN])))
        assert controller.view().cursor in (0, 1, 2)
