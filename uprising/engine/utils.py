"""
Utility functions: unit creation/placement, game initialization and a text dump of the state.
"""

import random

from uprising.engine import DOMINION, LIBERATION, FACTIONS, PHASE_ASSIGNMENT
from uprising.engine.definitions import GameDefinitions
from uprising.engine.state import GameState, SystemState, Leader, Unit


def create_unit(state: GameState, definitions: GameDefinitions, unit_id: str) -> Unit:
    """Create a Unit instance with proper ID generation. Unknown unit types raise."""
    unit_def = definitions.unit(unit_id)
    return Unit(
        instance_id=state.generate_unit_instance_id(unit_def.faction, unit_id),
        unit_id=unit_id,
        faction=unit_def.faction,
        max_health=unit_def.health,
    )


def place_unit(state: GameState, definitions: GameDefinitions, system_id: str, unit: Unit) -> None:
    """Append a unit to the roster its type belongs in (space, or ground for ground units and structures)."""
    state.systems[system_id].roster(definitions.unit(unit.unit_id).roster).append(unit)


def spawn_units(
    state: GameState,
    definitions: GameDefinitions,
    system_id: str,
    unit_id: str,
    count: int = 1,
) -> list[Unit]:
    created = []
    for _ in range(count):
        unit = create_unit(state, definitions, unit_id)
        place_unit(state, definitions, system_id, unit)
        created.append(unit)
    return created


def remove_unit(system: SystemState, instance_id: str) -> Unit | None:
    """Remove a unit from whichever roster holds it."""
    for roster in (system.space_units, system.ground_units):
        for i, unit in enumerate(roster):
            if unit.instance_id == instance_id:
                return roster.pop(i)
    return None


def _place_stacks(
    state: GameState,
    definitions: GameDefinitions,
    system_id: str,
    placement: dict[str, list[dict]],
) -> None:
    """placement: {"space": [{"unit_id", "count"}], "ground": [...]}"""
    for stacks in placement.values():
        for stack in stacks:
            spawn_units(state, definitions, system_id, stack["unit_id"], stack.get("count", 1))


def initialize_game_state(definitions: GameDefinitions, rng: random.Random) -> GameState:
    """
    Create the initial game state for a new game.

    Draw order (all from rng): mission decks, objective deck, probe deck, tactic card pools,
    then the Liberation base among non-Dominion systems of the base regions.
    """
    rules = definitions.rules
    systems = {
        system_id: SystemState(system_id=system_id, loyalty=system_def.loyalty)
        for system_id, system_def in definitions.systems.items()
    }
    leaders = {}
    for leader_def in definitions.leaders.values():
        leaders[leader_def.id] = Leader(
            leader_id=leader_def.id,
            name=leader_def.display_name,
            faction=leader_def.faction,
            skills=dict(leader_def.skills),
            location=leader_def.start_system,
        )

    state = GameState(
        turn=1,
        phase=PHASE_ASSIGNMENT,
        active_player=LIBERATION,
        systems=systems,
        leaders=leaders,
        liberation_base="",
        reputation_marker=rules.starting_reputation,
        log_limit=rules.log_limit,
    )

    for system_id, placement in definitions.starting_setup.get("dominion_units", {}).items():
        definitions.system(system_id)
        _place_stacks(state, definitions, system_id, placement)

    for faction in FACTIONS:
        missions = definitions.missions_for(faction)
        rng.shuffle(missions)
        state.mission_hands[faction] = missions[: rules.hand_size]
        state.mission_decks[faction] = missions[rules.hand_size:]

    objectives = list(definitions.objectives)
    rng.shuffle(objectives)
    state.current_objectives = objectives[: rules.objectives_face_up]
    state.objective_deck = objectives[rules.objectives_face_up:]

    # Probe deck: every system not Dominion-loyal in the static data
    probe_deck = [sid for sid, s in definitions.systems.items() if s.loyalty != DOMINION]
    rng.shuffle(probe_deck)
    state.probe_deck = probe_deck

    for faction in FACTIONS:
        cards = definitions.tactic_cards_for(faction)
        rng.shuffle(cards)
        state.tactic_cards[faction] = cards

    candidates = [
        sid for sid, s in definitions.systems.items()
        if s.region in rules.base_regions and s.loyalty != DOMINION
    ]
    if not candidates:
        raise ValueError(f"Setup {definitions.setup_id} has no eligible Liberation base system")
    base = rng.choice(candidates)
    state.liberation_base = base
    _place_stacks(state, definitions, base, definitions.starting_setup.get("liberation_base_units", {}))
    for leader in state.faction_leaders(LIBERATION):
        if leader.location is None:
            leader.location = base
    state.systems[base].loyalty = LIBERATION

    state.add_log("The galaxy stands on the brink. The Dominion tightens its grip. The Liberation rises.")
    state.add_log("Liberation base established in secret.")
    state.add_log("Turn 1 begins. Liberation assigns first.")
    return state


def print_game_state(state: GameState, definitions: GameDefinitions) -> None:
    """Print a human-readable summary of the game state."""
    print(f"\n{'='*60}")
    print(f"Turn {state.turn} | Phase: {state.phase} | Active: {state.active_player}")
    print(f"Reputation: {state.reputation_marker} | Time: {state.time_marker}/{definitions.rules.max_turns}")
    if state.winner:
        print(f"WINNER: {state.winner}")
    print(f"{'='*60}")

    for system_id, system in state.systems.items():
        units = system.space_units + system.ground_units
        leaders = [l for l in state.leaders.values() if l.location == system_id and not l.captured]
        if not units and not leaders:
            continue
        counts: dict[str, int] = {}
        for unit in units:
            counts[unit.unit_id] = counts.get(unit.unit_id, 0) + 1
        unit_str = ", ".join(f"{n}x {definitions.unit(uid).display_name}" for uid, n in counts.items())
        leader_str = ", ".join(l.name for l in leaders)
        print(f"  {definitions.system(system_id).display_name} [{system.loyalty}]")
        if unit_str:
            print(f"    Units: {unit_str}")
        if leader_str:
            print(f"    Leaders: {leader_str}")

    for faction in FACTIONS:
        hand = ", ".join(definitions.mission(m).display_name for m in state.mission_hands.get(faction, []))
        print(f"  {faction} hand: {hand}")
    objectives = ", ".join(definitions.objective(o).display_name for o in state.current_objectives)
    print(f"  Objectives: {objectives}")
    if state.active_combat:
        combat = state.active_combat
        print(f"  Combat at {combat.system_id}: {combat.domain} round {combat.round_number}")
