"""
Query functions for UI and AI integration.
These functions help a caller understand the board and what actions are available
without mutating game state.
"""

import random
from dataclasses import dataclass
from typing import Any

from uprising.engine import FACTIONS, SPACE, GROUND
from uprising.engine.actions import Action
from uprising.engine.combat import available_cards
from uprising.engine.definitions import GameDefinitions
from uprising.engine.errors import RuleViolation, Rejection
from uprising.engine.movement import get_adjacent_systems, has_opposing_forces as _has_opposing_forces
from uprising.engine.reducer import PHASE_ALLOWED_ACTIONS, COMBAT_ACTIONS, apply_action
from uprising.engine.state import GameState, Leader, Unit


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None
    reason: str | None = None  # Rejection code when invalid

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error, "reason": self.reason}


# ===== Action Validation =====

def validate_action(state: GameState, action: Action, definitions: GameDefinitions) -> ValidationResult:
    """
    Validate an action without applying it.
    Runs the reducer on a copy with a throwaway random source, so the game's own
    random sequence is not consumed.
    """
    try:
        apply_action(state, action, definitions, random.Random(0))
    except RuleViolation as e:
        return ValidationResult(False, e.message, e.code.value)
    return ValidationResult(True)


def get_available_action_types(state: GameState) -> list[str]:
    """Get action types available in the current phase and combat state."""
    if state.winner is not None:
        return []

    allowed = list(PHASE_ALLOWED_ACTIONS.get(state.phase, []))
    if state.active_combat is not None:
        return [a for a in allowed if a in COMBAT_ACTIONS]
    return [a for a in allowed if a not in COMBAT_ACTIONS]


# ===== Board Queries =====

def _require_system(state: GameState, system_id: str) -> None:
    if system_id not in state.systems:
        raise RuleViolation(Rejection.UNKNOWN_SYSTEM, f"Unknown system: {system_id}")


def get_system_units(state: GameState, system_id: str, faction: str) -> dict[str, list[Unit]]:
    """A faction's units in a system, split by roster."""
    _require_system(state, system_id)
    system = state.systems[system_id]
    return {
        SPACE: system.faction_units(faction, SPACE),
        GROUND: system.faction_units(faction, GROUND),
    }


def get_leaders_in_system(state: GameState, system_id: str, faction: str) -> list[Leader]:
    """Non-captured leaders of a faction at a system."""
    _require_system(state, system_id)
    return [
        l for l in state.faction_leaders(faction)
        if l.location == system_id and not l.captured
    ]


def get_total_units(state: GameState, faction: str) -> int:
    return state.unit_count(faction)


def has_opposing_forces(state: GameState, definitions: GameDefinitions, system_id: str) -> bool:
    _require_system(state, system_id)
    return _has_opposing_forces(state, definitions, system_id)


def get_available_tactic_cards(
    state: GameState,
    definitions: GameDefinitions,
    faction: str,
) -> list[dict[str, Any]]:
    """
    Tactic cards a faction may play in the active combat: matching domain and
    no card played by that faction yet this round. Empty without a combat.
    """
    combat = state.active_combat
    if combat is None or combat.cards_played.get(faction) is not None:
        return []
    return [
        {
            "id": card.id,
            "display_name": card.display_name,
            "domain": card.domain,
            "text": card.text,
        }
        for card in available_cards(state, definitions, faction)
    ]


def get_eligible_leaders(
    state: GameState,
    definitions: GameDefinitions,
    faction: str,
) -> list[dict[str, Any]]:
    """
    Leaders that may still be assigned this phase, each with the missions in hand
    whose skill gate they meet.
    """
    hand = [definitions.mission(m) for m in state.mission_hands.get(faction, [])]
    result = []
    for leader in state.faction_leaders(faction):
        if leader.captured or leader.exhausted or leader.leader_id in state.assigned_leader_ids:
            continue
        missions = [m.id for m in hand if leader.skill(m.skill) >= m.min_skill]
        result.append({
            "leader_id": leader.leader_id,
            "name": leader.name,
            "location": leader.location,
            "missions": missions,
        })
    return result


def get_game_summary(state: GameState, definitions: GameDefinitions) -> dict[str, Any]:
    """
    Get a summary of the current game state for display and logging.
    Read-only diagnostic view: the Liberation base location is only included once revealed.
    """
    return {
        "turn": state.turn,
        "phase": state.phase,
        "active_player": state.active_player,
        "reputation_marker": state.reputation_marker,
        "time_marker": state.time_marker,
        "max_turns": definitions.rules.max_turns,
        "game_over": state.game_over,
        "winner": state.winner,
        "unit_counts": {f: state.unit_count(f) for f in FACTIONS},
        "probe_deck_size": len(state.probe_deck),
        "base_revealed": state.base_revealed,
        "liberation_base": state.liberation_base if state.base_revealed else None,
        "current_objectives": [definitions.objective(o).display_name for o in state.current_objectives],
        "completed_objectives": [definitions.objective(o).display_name for o in state.completed_objectives],
        "active_combat": state.active_combat.system_id if state.active_combat else None,
        "available_actions": get_available_action_types(state),
    }


__all__ = [
    "ValidationResult",
    "validate_action",
    "get_available_action_types",
    "get_adjacent_systems",
    "get_system_units",
    "get_leaders_in_system",
    "get_total_units",
    "has_opposing_forces",
    "get_available_tactic_cards",
    "get_eligible_leaders",
    "get_game_summary",
]
