"""
Liberation objective checks and scoring.
"""

from typing import Callable

from uprising.engine import LIBERATION
from uprising.engine.definitions import GameDefinitions, ObjectiveCheck, ObjectiveDefinition
from uprising.engine.state import GameState

ObjectivePredicate = Callable[[GameState, GameDefinitions], bool]


def _liberation_systems(state: GameState, definitions: GameDefinitions) -> list:
    return [
        definitions.system(sid) for sid, system in state.systems.items()
        if system.loyalty == LIBERATION
    ]


def _liberation_regions(state: GameState, definitions: GameDefinitions) -> set[str]:
    return {s.region for s in _liberation_systems(state, definitions)}


def _loyalty_outside_core(state: GameState, definitions: GameDefinitions) -> bool:
    core = definitions.rules.core_region
    return len([s for s in _liberation_systems(state, definitions) if s.region != core]) >= 3


def _loyalty_core_world(state: GameState, definitions: GameDefinitions) -> bool:
    core = definitions.rules.core_region
    return any(s.region == core for s in _liberation_systems(state, definitions))


def _control_production(state: GameState, definitions: GameDefinitions) -> bool:
    return len([s for s in _liberation_systems(state, definitions) if s.has_production]) >= 3


def _loyalty_count(n: int) -> ObjectivePredicate:
    def check(state: GameState, definitions: GameDefinitions) -> bool:
        return len(_liberation_systems(state, definitions)) >= n
    return check


def _region_count(n: int) -> ObjectivePredicate:
    def check(state: GameState, definitions: GameDefinitions) -> bool:
        return len(_liberation_regions(state, definitions)) >= n
    return check


OBJECTIVE_CHECKS: dict[ObjectiveCheck, ObjectivePredicate] = {
    ObjectiveCheck.LOYALTY_OUTSIDE_CORE_3: _loyalty_outside_core,
    ObjectiveCheck.WIN_GROUND_DEFENSE: lambda state, _: state.stats.ground_defense_wins > 0,
    ObjectiveCheck.DESTROY_CAPITAL: lambda state, _: state.stats.capital_ships_destroyed > 0,
    ObjectiveCheck.LOYALTY_3_REGIONS: _region_count(3),
    ObjectiveCheck.CONTROL_3_PRODUCTION: _control_production,
    ObjectiveCheck.WIN_SPACE_VS_3PLUS: lambda state, _: state.stats.space_wins_vs_3plus > 0,
    ObjectiveCheck.LOYALTY_5_SYSTEMS: _loyalty_count(5),
    ObjectiveCheck.CAPTURE_DOM_LEADER: lambda state, _: state.stats.dominion_leaders_captured > 0,
    ObjectiveCheck.LOYALTY_CORE_WORLD: _loyalty_core_world,
    ObjectiveCheck.CONTROL_4_REGIONS: _region_count(4),
    ObjectiveCheck.DESTROY_TITAN: lambda state, _: state.titan_destroyed,
    ObjectiveCheck.LOYALTY_8_SYSTEMS: _loyalty_count(8),
    ObjectiveCheck.DESTROY_5_UNITS_BATTLE: lambda state, _: state.stats.units_destroyed_in_battle >= 5,
    ObjectiveCheck.SURVIVE_10_TURNS: lambda state, _: state.turn >= 10 and not state.base_revealed,
}


def evaluate_objective(state: GameState, definitions: GameDefinitions, objective: ObjectiveDefinition) -> bool:
    return bool(OBJECTIVE_CHECKS[objective.check](state, definitions))


def check_objectives(state: GameState, definitions: GameDefinitions) -> list[ObjectiveDefinition]:
    """
    Score every face-up objective whose condition holds.
    Each completion lowers the reputation marker by its points and draws a replacement;
    replacements are not evaluated until the next check.
    """
    completed = [
        definitions.objective(oid) for oid in state.current_objectives
        if evaluate_objective(state, definitions, definitions.objective(oid))
    ]
    for objective in completed:
        state.current_objectives.remove(objective.id)
        state.completed_objectives.append(objective.id)
        state.reputation_marker -= objective.points
        state.add_log(
            f"Objective completed: {objective.display_name} ({objective.points} points)! "
            f"Reputation now {state.reputation_marker}."
        )
        if state.objective_deck:
            state.current_objectives.append(state.objective_deck.pop())
    return completed
