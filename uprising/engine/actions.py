"""
Action definitions for the game.
Actions are immutable, deterministic instructions.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class Action:
    """Base action class. All actions have a type, faction, and payload."""
    type: str  # e.g., "assign_leader", "move_units", "execute_combat_round"
    faction: str  # faction performing the action
    payload: dict  # Action-specific data

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "faction": self.faction, "payload": dict(self.payload)}


def assign_leader(
    faction: str,
    leader_id: str,
    mission_id: str,
    target_system: str | None = None,
) -> Action:
    """
    Assign a leader to a mission in hand.
    target_system defaults to the leader's current location.
    """
    payload = {"leader_id": leader_id, "mission_id": mission_id}
    if target_system is not None:
        payload["target_system"] = target_system
    return Action(type="assign_leader", faction=faction, payload=payload)


def pass_assignment(faction: str) -> Action:
    """Stop assigning leaders this turn."""
    return Action(type="pass_assignment", faction=faction, payload={})


def resolve_mission(faction: str, assignment_index: int = 0) -> Action:
    """Resolve one of the faction's pending assignments (the earliest by default)."""
    return Action(
        type="resolve_mission",
        faction=faction,
        payload={"assignment_index": assignment_index},
    )


def move_units(
    faction: str,
    system_from: str,
    system_to: str,
    unit_instance_ids: list[str],
    leader_id: str | None = None,
) -> Action:
    """
    Move units between adjacent systems.
    Units are specified by their instance_ids. leader_id optionally travels with them.
    """
    payload = {
        "from": system_from,
        "to": system_to,
        "unit_instance_ids": list(unit_instance_ids),
    }
    if leader_id is not None:
        payload["leader_id"] = leader_id
    return Action(type="move_units", faction=faction, payload=payload)


def pass_command(faction: str) -> Action:
    return Action(type="pass_command", faction=faction, payload={})


def initiate_combat(faction: str, system_id: str) -> Action:
    """Start a battle in a system where both factions have combat-eligible forces."""
    return Action(type="initiate_combat", faction=faction, payload={"system_id": system_id})


def play_tactic_card(faction: str, card_id: str) -> Action:
    """Play a tactic card for the current combat round."""
    return Action(type="play_tactic_card", faction=faction, payload={"card_id": card_id})


def execute_combat_round(faction: str) -> Action:
    """Roll and resolve one round of the active combat. Either faction may trigger it."""
    return Action(type="execute_combat_round", faction=faction, payload={})


def retreat(faction: str) -> Action:
    """End the active combat early; surviving units stay where they are."""
    return Action(type="retreat", faction=faction, payload={})
