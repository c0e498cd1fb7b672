"""
Game events for UI hooks and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

# Phase/Turn events
PHASE_CHANGED = "phase_changed"
TURN_STARTED = "turn_started"

# Assignment/mission events
LEADER_ASSIGNED = "leader_assigned"
ASSIGNMENT_PASSED = "assignment_passed"
COMMAND_PASSED = "command_passed"
MISSION_RESOLVED = "mission_resolved"

# Movement events
UNITS_MOVED = "units_moved"
LEADER_MOVED = "leader_moved"

# Combat events
COMBAT_STARTED = "combat_started"
TACTIC_CARD_PLAYED = "tactic_card_played"
COMBAT_ROUND_RESOLVED = "combat_round_resolved"
DOMAIN_RESOLVED = "domain_resolved"
COMBAT_ENDED = "combat_ended"
UNITS_RETREATED = "units_retreated"

# Unit events
UNIT_DESTROYED = "unit_destroyed"
UNITS_PRODUCED = "units_produced"
PRODUCTION_DEPLOYED = "production_deployed"

# Objective/victory events
OBJECTIVE_COMPLETED = "objective_completed"
VICTORY = "victory"


# ===== Event Factory Functions =====

def phase_changed(old_phase: str, new_phase: str, active_player: str) -> GameEvent:
    return GameEvent(PHASE_CHANGED, {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "active_player": active_player,
    })


def turn_started(turn: int, active_player: str) -> GameEvent:
    return GameEvent(TURN_STARTED, {"turn": turn, "active_player": active_player})


def leader_assigned(faction: str, leader_id: str, mission_id: str, target_system: str) -> GameEvent:
    return GameEvent(LEADER_ASSIGNED, {
        "faction": faction,
        "leader_id": leader_id,
        "mission_id": mission_id,
        "target_system": target_system,
    })


def assignment_passed(faction: str) -> GameEvent:
    return GameEvent(ASSIGNMENT_PASSED, {"faction": faction})


def command_passed(faction: str) -> GameEvent:
    return GameEvent(COMMAND_PASSED, {"faction": faction})


def mission_resolved(
    faction: str,
    leader_id: str,
    mission_id: str,
    target_system: str,
    message: str,
) -> GameEvent:
    return GameEvent(MISSION_RESOLVED, {
        "faction": faction,
        "leader_id": leader_id,
        "mission_id": mission_id,
        "target_system": target_system,
        "message": message,
    })


def units_moved(faction: str, from_system: str, to_system: str, unit_ids: list[str]) -> GameEvent:
    return GameEvent(UNITS_MOVED, {
        "faction": faction,
        "from": from_system,
        "to": to_system,
        "unit_ids": unit_ids,
    })


def leader_moved(leader_id: str, from_system: str, to_system: str) -> GameEvent:
    return GameEvent(LEADER_MOVED, {"leader_id": leader_id, "from": from_system, "to": to_system})


def combat_started(
    system_id: str,
    attacker: str | None,
    domain: str,
    unit_counts: dict[str, dict[str, int]],
) -> GameEvent:
    return GameEvent(COMBAT_STARTED, {
        "system_id": system_id,
        "attacker": attacker,
        "domain": domain,
        "unit_counts": unit_counts,
    })


def tactic_card_played(faction: str, card_id: str, domain: str) -> GameEvent:
    return GameEvent(TACTIC_CARD_PLAYED, {"faction": faction, "card_id": card_id, "domain": domain})


def combat_round_resolved(system_id: str, round_result: dict[str, Any]) -> GameEvent:
    return GameEvent(COMBAT_ROUND_RESOLVED, {"system_id": system_id, **round_result})


def domain_resolved(system_id: str, domain: str, winner: str | None) -> GameEvent:
    return GameEvent(DOMAIN_RESOLVED, {"system_id": system_id, "domain": domain, "winner": winner})


def combat_ended(
    system_id: str,
    domain_winners: dict[str, str | None],
    retreated: str | None,
    destroyed_unit_ids: list[str],
) -> GameEvent:
    return GameEvent(COMBAT_ENDED, {
        "system_id": system_id,
        "domain_winners": domain_winners,
        "retreated": retreated,
        "destroyed_unit_ids": destroyed_unit_ids,
    })


def units_retreated(faction: str, system_id: str) -> GameEvent:
    return GameEvent(UNITS_RETREATED, {"faction": faction, "system_id": system_id})


def unit_destroyed(
    instance_id: str,
    unit_id: str,
    faction: str,
    system_id: str,
    cause: str,  # "combat" or "mission"
) -> GameEvent:
    return GameEvent(UNIT_DESTROYED, {
        "instance_id": instance_id,
        "unit_id": unit_id,
        "faction": faction,
        "system_id": system_id,
        "cause": cause,
    })


def units_produced(faction: str, placements: list[dict[str, str]]) -> GameEvent:
    """placements: [{"system_id", "instance_id", "unit_id"}, ...]"""
    return GameEvent(UNITS_PRODUCED, {"faction": faction, "placements": placements})


def production_deployed(faction: str, unit_id: str, system_id: str, instance_id: str) -> GameEvent:
    return GameEvent(PRODUCTION_DEPLOYED, {
        "faction": faction,
        "unit_id": unit_id,
        "system_id": system_id,
        "instance_id": instance_id,
    })


def objective_completed(objective_id: str, points: int, reputation_marker: int) -> GameEvent:
    return GameEvent(OBJECTIVE_COMPLETED, {
        "objective_id": objective_id,
        "points": points,
        "reputation_marker": reputation_marker,
    })


def victory(winner: str, reason: str, turn: int) -> GameEvent:
    return GameEvent(VICTORY, {"winner": winner, "reason": reason, "turn": turn})
