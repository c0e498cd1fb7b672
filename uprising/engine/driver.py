"""
Synchronous game loop for automated actors.

An actor is any callable (engine, faction) -> Action | None. Outside combat the loop asks the
active player. During a combat round the defender is asked first and may play a card, retreat
or decline by returning None; then the side that rolls the dice (the attacker, or Dominion when
nobody attacked) acts, and a None from it means "roll". The optional pacing hook runs between
actions; it is a courtesy for human observers and has no effect on the rules.
"""

import logging
from typing import Callable

from uprising.engine import DOMINION, PHASE_ASSIGNMENT, other_faction
from uprising.engine.actions import Action, execute_combat_round, pass_assignment, pass_command, retreat
from uprising.engine.errors import RuleViolation, Rejection
from uprising.engine.game import GameEngine
from uprising.engine.state import ActiveCombat

logger = logging.getLogger(__name__)

Actor = Callable[[GameEngine, str], Action | None]

DEFAULT_MAX_STEPS = 10_000


def combat_roller(combat: ActiveCombat) -> str:
    return combat.attacker or DOMINION


def acting_faction(engine: GameEngine) -> str:
    """The faction whose action moves the game on: the dice roller in combat, else the active player."""
    combat = engine.state.active_combat
    if combat is not None:
        return combat_roller(combat)
    return engine.state.active_player


def passive_actor(engine: GameEngine, faction: str) -> Action:
    """Never assigns, moves or fights: retreats from any combat and passes otherwise."""
    if engine.state.active_combat is not None:
        return retreat(faction)
    if engine.state.phase == PHASE_ASSIGNMENT:
        return pass_assignment(faction)
    return pass_command(faction)


def play(
    engine: GameEngine,
    actors: dict[str, Actor],
    pacing: Callable[[], None] | None = None,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> str | None:
    """
    Drive the game until it ends or max_steps actions have been applied.

    Returns:
        The winner, or None if the step limit was reached first.

    Raises:
        RuleViolation: an actor produced an illegal action.
    """
    steps = 0
    combat_round = None
    defender_asked = False
    while not engine.state.game_over:
        if steps >= max_steps:
            logger.warning("stopped after %d steps without a winner", max_steps)
            break

        combat = engine.state.active_combat
        if combat is None:
            combat_round = None
            faction = acting_faction(engine)
            action = actors[faction](engine, faction)
        else:
            current_round = (combat.system_id, combat.domain, combat.round_number)
            if current_round != combat_round:
                combat_round = current_round
                defender_asked = False
            roller = combat_roller(combat)
            if not defender_asked:
                defender_asked = True
                faction = other_faction(roller)
                action = actors[faction](engine, faction)
                if action is None:
                    continue
            else:
                faction = roller
                action = actors[faction](engine, faction) or execute_combat_round(faction)

        result = engine.apply(action)
        if not result.ok:
            raise RuleViolation(Rejection(result.reason), result.message)
        steps += 1
        if pacing is not None and not engine.state.game_over:
            pacing()
    return engine.state.winner
