"""
GameEngine: owns the definitions, the single random source and the current state.

The reducer is pure with respect to its input state; the engine is the stateful seam that
callers (the API, the CLI, scripted actors) drive one action at a time. Rejected actions come
back as an ActionResult with a stable reason code instead of an exception.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from uprising.engine import actions as action_factories
from uprising.engine.actions import Action
from uprising.engine.definitions import GameDefinitions, load_static_definitions
from uprising.engine.errors import RuleViolation
from uprising.engine.events import GameEvent
from uprising.engine.reducer import apply_action, replay_from_actions
from uprising.engine.state import GameState, Leader, Unit
from uprising.engine.utils import initialize_game_state
from uprising.engine import queries

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of GameEngine.apply: ok, or a rejection reason code with a message."""
    ok: bool
    reason: str | None = None
    message: str | None = None
    events: list[GameEvent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "reason": self.reason,
            "message": self.message,
            "events": [e.to_dict() for e in self.events],
        }


class GameEngine:
    """
    A single game in progress.

    Args:
        definitions: Loaded setup; the configured default setup is loaded when omitted.
        seed: Seed for the random source. Recorded so the game can be replayed.
        rng: An explicit random source (e.g. a scripted one in tests). Overrides seed.
    """

    def __init__(
        self,
        definitions: GameDefinitions | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self.definitions = definitions or load_static_definitions()
        self.seed = seed
        self.rng = rng if rng is not None else random.Random(seed)
        self.state: GameState = initialize_game_state(self.definitions, self.rng)
        self.action_log: list[Action] = []

    def new_game(self, seed: int | None = None) -> GameState:
        """
        Start over with a fresh state. A new seed reseeds the random source; without one
        the source carries on and the game can no longer be replayed from a seed.
        """
        self.seed = seed
        if seed is not None:
            self.rng.seed(seed)
        self.state = initialize_game_state(self.definitions, self.rng)
        self.action_log = []
        return self.state

    # ===== Commands =====

    def apply(self, action: Action) -> ActionResult:
        try:
            new_state, events = apply_action(self.state, action, self.definitions, self.rng)
        except RuleViolation as e:
            logger.debug("rejected %s from %s: %s", action.type, action.faction, e.code.value)
            return ActionResult(ok=False, reason=e.code.value, message=e.message)
        self.state = new_state
        self.action_log.append(action)
        return ActionResult(ok=True, events=events)

    def _faction(self, faction: str | None) -> str:
        return faction or self.state.active_player

    def assign_leader(
        self,
        leader_id: str,
        mission_id: str,
        target_system: str | None = None,
        faction: str | None = None,
    ) -> ActionResult:
        return self.apply(action_factories.assign_leader(
            self._faction(faction), leader_id, mission_id, target_system,
        ))

    def pass_assignment(self, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.pass_assignment(self._faction(faction)))

    def resolve_mission(self, assignment_index: int = 0, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.resolve_mission(self._faction(faction), assignment_index))

    def move_units(
        self,
        system_from: str,
        system_to: str,
        unit_instance_ids: list[str],
        leader_id: str | None = None,
        faction: str | None = None,
    ) -> ActionResult:
        return self.apply(action_factories.move_units(
            self._faction(faction), system_from, system_to, unit_instance_ids, leader_id,
        ))

    def pass_command(self, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.pass_command(self._faction(faction)))

    def initiate_combat(self, system_id: str, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.initiate_combat(self._faction(faction), system_id))

    def play_tactic_card(self, card_id: str, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.play_tactic_card(self._faction(faction), card_id))

    def execute_combat_round(self, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.execute_combat_round(self._faction(faction)))

    def retreat(self, faction: str | None = None) -> ActionResult:
        return self.apply(action_factories.retreat(self._faction(faction)))

    # ===== Queries =====

    def get_adjacent_systems(self, system_id: str) -> list[str]:
        return queries.get_adjacent_systems(self.definitions, system_id)

    def get_system_units(self, system_id: str, faction: str) -> dict[str, list[Unit]]:
        return queries.get_system_units(self.state, system_id, faction)

    def get_leaders_in_system(self, system_id: str, faction: str) -> list[Leader]:
        return queries.get_leaders_in_system(self.state, system_id, faction)

    def get_total_units(self, faction: str) -> int:
        return queries.get_total_units(self.state, faction)

    def has_opposing_forces(self, system_id: str) -> bool:
        return queries.has_opposing_forces(self.state, self.definitions, system_id)

    def get_available_tactic_cards(self, faction: str) -> list[dict[str, Any]]:
        return queries.get_available_tactic_cards(self.state, self.definitions, faction)

    def get_eligible_leaders(self, faction: str | None = None) -> list[dict[str, Any]]:
        return queries.get_eligible_leaders(self.state, self.definitions, self._faction(faction))

    def available_actions(self) -> list[str]:
        return queries.get_available_action_types(self.state)

    def validate(self, action: Action) -> queries.ValidationResult:
        return queries.validate_action(self.state, action, self.definitions)

    def summary(self) -> dict[str, Any]:
        return queries.get_game_summary(self.state, self.definitions)

    # ===== Replay =====

    def replay(self) -> GameState:
        """
        Rebuild the current state from the seed and the action log.
        Only possible for engines created from a seed.
        """
        if self.seed is None:
            raise ValueError("Cannot replay a game that was not started from a seed")
        state, _ = replay_from_actions(self.definitions, self.seed, self.action_log)
        return state
