"""
Engine error types.
RuleViolation is raised by the reducer for illegal actions; the engine facade turns it into a
structured rejection. UnknownDefinitionError marks content/programmer errors and is never caught.
"""

from enum import Enum


class Rejection(str, Enum):
    """Stable reason codes for rejected commands."""
    GAME_OVER = "game_over"
    UNKNOWN_ACTION = "unknown_action"
    WRONG_PHASE = "wrong_phase"
    NOT_YOUR_TURN = "not_your_turn"
    COMBAT_ACTIVE = "combat_active"
    NO_ACTIVE_COMBAT = "no_active_combat"
    INVALID_LEADER_OR_MISSION = "invalid_leader_or_mission"
    LEADER_CAPTURED = "leader_captured"
    LEADER_ALREADY_ASSIGNED = "leader_already_assigned"
    LEADER_EXHAUSTED = "leader_exhausted"
    INSUFFICIENT_SKILL = "insufficient_skill"
    NO_SUCH_ASSIGNMENT = "no_such_assignment"
    UNKNOWN_SYSTEM = "unknown_system"
    NOT_ADJACENT = "not_adjacent"
    NO_COMMANDING_LEADER = "no_commanding_leader"
    NO_UNITS = "no_units"
    UNIT_NOT_FOUND = "unit_not_found"
    UNIT_IMMOBILE = "unit_immobile"
    INVALID_LEADER = "invalid_leader"
    NO_OPPOSING_FORCES = "no_opposing_forces"
    CARD_NOT_AVAILABLE = "card_not_available"
    CARD_ALREADY_PLAYED = "card_already_played"


class RuleViolation(ValueError):
    """An action that is illegal in the current state."""

    def __init__(self, code: Rejection, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"reason": self.code.value, "message": self.message}


class UnknownDefinitionError(KeyError):
    """Lookup of an id that is not in the loaded content tables."""

    def __init__(self, kind: str, key: str):
        super().__init__(key)
        self.kind = kind
        self.key = key

    def __str__(self) -> str:
        return f"Unknown {self.kind}: {self.key!r}"
