"""
Galactic Uprising rules engine.
Core engine without web framework or UI: phase state machine, mission effects, production, combat.
"""

DOMINION = "dominion"
LIBERATION = "liberation"
NEUTRAL = "neutral"
FACTIONS = (DOMINION, LIBERATION)

# Phases, in turn order. "game_over" is terminal.
PHASE_ASSIGNMENT = "assignment"
PHASE_COMMAND = "command"
PHASE_REFRESH = "refresh"
PHASE_GAME_OVER = "game_over"

# Unit domains. Structures sit in the ground roster but never fight.
SPACE = "space"
GROUND = "ground"
STRUCTURE = "structure"
COMBAT_DOMAINS = (SPACE, GROUND)

SKILLS = ("diplomacy", "intel", "combat", "logistics")

HIT = "hit"
CRIT = "crit"
MISS = "miss"
DICE_FACES = {
    "red": (HIT, HIT, HIT, CRIT, MISS, MISS),
    "black": (HIT, HIT, CRIT, MISS, MISS, MISS),
}


def other_faction(faction: str) -> str:
    return LIBERATION if faction == DOMINION else DOMINION
