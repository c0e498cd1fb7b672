"""
Pytest fixtures for Galactic Uprising tests.
"""

import random

import pytest

from uprising.engine import DOMINION, LIBERATION, PHASE_COMMAND
from uprising.engine.definitions import GameDefinitions, load_static_definitions
from uprising.engine.game import GameEngine
from uprising.engine.state import GameState, Assignment
from uprising.engine.utils import initialize_game_state, spawn_units


class ScriptedRandom(random.Random):
    """
    Random source whose randrange returns queued values first.
    Dice go through randrange; shuffles and choices use the seeded generator underneath.
    """

    def __init__(self, rolls=(), seed=0):
        super().__init__(seed)
        self.queue = list(rolls)

    def queue_rolls(self, *rolls):
        self.queue.extend(rolls)

    def randrange(self, *args, **kwargs):
        if self.queue:
            return self.queue.pop(0)
        return super().randrange(*args, **kwargs)


@pytest.fixture(scope="session")
def definitions() -> GameDefinitions:
    """Standard setup, loaded once."""
    return load_static_definitions(setup_id="standard")


@pytest.fixture
def engine(definitions) -> GameEngine:
    """Seeded game at the start of turn 1."""
    return GameEngine(definitions=definitions, seed=42)


@pytest.fixture
def state(definitions) -> GameState:
    """Bare initial state for calling engine functions directly."""
    return initialize_game_state(definitions, random.Random(5))


@pytest.fixture
def scripted_engine(definitions) -> GameEngine:
    """Engine whose dice can be scripted through engine.rng.queue_rolls()."""
    return GameEngine(definitions=definitions, rng=ScriptedRandom(seed=3))


def clear_units(state: GameState, system_id: str) -> None:
    system = state.systems[system_id]
    system.space_units.clear()
    system.ground_units.clear()


def enter_command_phase(engine: GameEngine, assignments=None, active=LIBERATION) -> None:
    """
    Jump straight to the command phase.
    assignments: {faction: [(leader_id, mission_id, target_system), ...]}
    """
    state = engine.state
    state.phase = PHASE_COMMAND
    state.active_player = active
    state.assignments = {DOMINION: [], LIBERATION: []}
    for faction, entries in (assignments or {}).items():
        for leader_id, mission_id, target in entries:
            state.assignments[faction].append(Assignment(leader_id, mission_id, target))
            state.leaders[leader_id].on_mission = True
            state.assigned_leader_ids.append(leader_id)


def place(engine_or_state, definitions, system_id, unit_id, count=1):
    state = engine_or_state.state if isinstance(engine_or_state, GameEngine) else engine_or_state
    return spawn_units(state, definitions, system_id, unit_id, count)
