"""
Main game reducer.
Applies actions to state, enforcing rules and producing new state.
Returns (new_state, events) where events describe what happened.
"""

import logging
import random

from uprising.engine import (
    DOMINION,
    LIBERATION,
    FACTIONS,
    GROUND,
    PHASE_ASSIGNMENT,
    PHASE_COMMAND,
    PHASE_REFRESH,
    PHASE_GAME_OVER,
    other_faction,
)
from uprising.engine.actions import Action
from uprising.engine.combat import (
    start_combat,
    play_card,
    execute_combat_round,
    retreat_from_combat,
)
from uprising.engine.definitions import GameDefinitions
from uprising.engine.errors import RuleViolation, Rejection
from uprising.engine.missions import execute_mission_effect
from uprising.engine.movement import (
    is_adjacent,
    has_commanding_leader,
    has_opposing_forces,
    transfer_units,
)
from uprising.engine.objectives import check_objectives
from uprising.engine.production import (
    run_auto_production,
    advance_production_queue,
    deploy_completed_production,
)
from uprising.engine.state import GameState, Assignment, ActiveCombat
from uprising.engine.utils import initialize_game_state
from uprising.engine.events import (
    GameEvent,
    phase_changed,
    turn_started,
    leader_assigned,
    assignment_passed,
    command_passed,
    mission_resolved,
    units_moved,
    leader_moved,
    combat_started,
    tactic_card_played,
    combat_round_resolved,
    domain_resolved,
    combat_ended,
    units_retreated,
    unit_destroyed,
    units_produced,
    production_deployed,
    objective_completed,
    victory,
)

logger = logging.getLogger(__name__)


# Phase rules: which action types are allowed in which phases
# Note: During active combat, only the combat actions are allowed
PHASE_ALLOWED_ACTIONS = {
    PHASE_ASSIGNMENT: ["assign_leader", "pass_assignment"],
    PHASE_COMMAND: [
        "resolve_mission",
        "move_units",
        "pass_command",
        "initiate_combat",
        "play_tactic_card",
        "execute_combat_round",
        "retreat",
    ],
    PHASE_REFRESH: [],
    PHASE_GAME_OVER: [],
}

# Either faction may issue these while a combat is active
COMBAT_ACTIONS = ["play_tactic_card", "execute_combat_round", "retreat"]

KNOWN_ACTIONS = {t for types in PHASE_ALLOWED_ACTIONS.values() for t in types}


def _label(faction: str) -> str:
    return faction.capitalize()


def _validate_action_for_phase(action: Action, state: GameState) -> None:
    """
    Validate that an action is allowed in the current phase, combat state and turn.

    - If active_combat exists: only the combat actions are allowed, from either faction
    - If no active_combat: combat actions are rejected, everything else must come
      from the active player
    """
    phase = state.phase
    allowed_actions = PHASE_ALLOWED_ACTIONS.get(phase, [])

    if action.type not in allowed_actions:
        raise RuleViolation(
            Rejection.WRONG_PHASE,
            f"Action '{action.type}' is not allowed in phase '{phase}'. "
            f"Allowed actions: {', '.join(allowed_actions) or 'none'}",
        )

    if state.active_combat is not None:
        if action.type not in COMBAT_ACTIONS:
            raise RuleViolation(
                Rejection.COMBAT_ACTIVE,
                f"Combat in progress at {state.active_combat.system_id}. "
                f"Must use {', '.join(COMBAT_ACTIONS)}, not '{action.type}'",
            )
        if action.faction not in FACTIONS:
            raise RuleViolation(Rejection.NOT_YOUR_TURN, f"Unknown faction {action.faction}")
        return

    if action.type in COMBAT_ACTIONS:
        raise RuleViolation(
            Rejection.NO_ACTIVE_COMBAT,
            f"No active combat to {action.type.replace('_', ' ')}",
        )

    if action.faction != state.active_player:
        raise RuleViolation(
            Rejection.NOT_YOUR_TURN,
            f"Action faction {action.faction} does not match active player {state.active_player}",
        )


def apply_action(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
    rng: random.Random,
) -> tuple[GameState, list[GameEvent]]:
    """
    Apply a single action to the current state, returning new state and events.

    The given state is never mutated: handlers work on a copy. A RuleViolation
    leaves the caller's state untouched.

    Args:
        state: Current game state
        action: Action to apply
        definitions: Static definitions of the setup being played
        rng: The game's single random source (dice, shuffles, production order)

    Returns:
        Tuple of (new_state, events) where events describe what happened
    """
    if state.winner is not None:
        raise RuleViolation(Rejection.GAME_OVER, f"Game is over. {_label(state.winner)} has won.")

    if action.type not in KNOWN_ACTIONS:
        raise RuleViolation(Rejection.UNKNOWN_ACTION, f"Unknown action type: {action.type}")

    _validate_action_for_phase(action, state)

    new_state = state.copy()
    events: list[GameEvent] = []

    if action.type == "assign_leader":
        events.extend(_handle_assign_leader(new_state, action, definitions))

    elif action.type == "pass_assignment":
        events.extend(_handle_pass_assignment(new_state, action, definitions))

    elif action.type == "resolve_mission":
        events.extend(_handle_resolve_mission(new_state, action, definitions, rng))

    elif action.type == "move_units":
        events.extend(_handle_move_units(new_state, action, definitions, rng))

    elif action.type == "pass_command":
        events.extend(_handle_pass_command(new_state, action, definitions, rng))

    elif action.type == "initiate_combat":
        events.extend(_handle_initiate_combat(new_state, action, definitions))

    elif action.type == "play_tactic_card":
        events.extend(_handle_play_tactic_card(new_state, action, definitions))

    elif action.type == "execute_combat_round":
        events.extend(_handle_execute_combat_round(new_state, definitions, rng))

    elif action.type == "retreat":
        events.extend(_handle_retreat(new_state, action, definitions, rng))

    logger.debug("applied %s for %s: %d events", action.type, action.faction, len(events))
    return new_state, events


# ===== Assignment phase =====

def _handle_assign_leader(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
) -> list[GameEvent]:
    """
    Assign a leader to a mission in hand.
    Validates (in order): leader and mission belong to the faction, leader not captured,
    not already assigned this phase, not exhausted, meets the mission's skill gate,
    and the target system exists.
    """
    faction = action.faction
    leader_id = action.payload.get("leader_id")
    mission_id = action.payload.get("mission_id")

    leader = state.leaders.get(leader_id)
    if leader is None or leader.faction != faction or mission_id not in state.mission_hands[faction]:
        raise RuleViolation(Rejection.INVALID_LEADER_OR_MISSION, "Invalid leader or mission.")
    mission = definitions.mission(mission_id)

    if leader.captured:
        raise RuleViolation(Rejection.LEADER_CAPTURED, f"{leader.name} is captured.")
    if leader_id in state.assigned_leader_ids:
        raise RuleViolation(Rejection.LEADER_ALREADY_ASSIGNED, f"{leader.name} already assigned this phase.")
    if leader.exhausted:
        raise RuleViolation(Rejection.LEADER_EXHAUSTED, f"{leader.name} is exhausted.")

    skill_value = leader.skill(mission.skill)
    if skill_value < mission.min_skill:
        raise RuleViolation(
            Rejection.INSUFFICIENT_SKILL,
            f"{leader.name} needs {mission.skill} {mission.min_skill}+ (has {skill_value}).",
        )

    target_system = action.payload.get("target_system") or leader.location
    if target_system not in state.systems:
        raise RuleViolation(Rejection.UNKNOWN_SYSTEM, f"Unknown target system: {target_system}")

    state.assignments[faction].append(Assignment(
        leader_id=leader_id,
        mission_id=mission_id,
        target_system=target_system,
    ))
    state.assigned_leader_ids.append(leader_id)
    leader.on_mission = True
    state.assignment_count[faction] += 1
    state.add_log(f"{leader.name} assigned to {mission.display_name}.")

    state.active_player = other_faction(faction)
    return [leader_assigned(faction, leader_id, mission_id, target_system)]


def _handle_pass_assignment(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
) -> list[GameEvent]:
    """
    A pass ends the faction's assignments. Once the other faction has passed too,
    the command phase starts.
    """
    faction = action.faction
    events = [assignment_passed(faction)]
    state.add_log(f"{_label(faction)} passes on assignment.")
    state.passes[faction] = True

    other = other_faction(faction)
    if state.passes[other]:
        events.extend(_start_command_phase(state, definitions))
    else:
        state.active_player = other
    return events


def _start_command_phase(state: GameState, definitions: GameDefinitions) -> list[GameEvent]:
    old_phase = state.phase
    state.phase = PHASE_COMMAND
    state.active_player = LIBERATION
    state.passes = {DOMINION: False, LIBERATION: False}
    state.add_log("Command Phase begins. Resolve missions and move fleets.")

    # Reveal assignments
    for faction in FACTIONS:
        for assignment in state.assignments[faction]:
            leader = state.leaders[assignment.leader_id]
            mission = definitions.mission(assignment.mission_id)
            state.add_log(f"{_label(faction)} reveals: {leader.name} on {mission.display_name}")

    logger.debug("turn %s: command phase", state.turn)
    return [phase_changed(old_phase, state.phase, state.active_player)]


# ===== Command phase =====

def _handle_resolve_mission(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Resolve one pending assignment: run its effect, return the leader to the target system,
    and discard the mission from hand unless it is repeatable.
    """
    faction = action.faction
    index = action.payload.get("assignment_index", 0)
    pending = state.assignments[faction]
    if not isinstance(index, int) or not 0 <= index < len(pending):
        raise RuleViolation(Rejection.NO_SUCH_ASSIGNMENT, "No such assignment.")

    assignment = pending[index]
    leader = state.leaders[assignment.leader_id]
    mission = definitions.mission(assignment.mission_id)
    events: list[GameEvent] = []

    message = execute_mission_effect(
        state, definitions, rng, faction, leader, mission, assignment.target_system,
    )

    state.assignments[faction].remove(assignment)

    old_location = leader.location
    leader.location = assignment.target_system
    leader.on_mission = False
    if old_location != leader.location:
        events.append(leader_moved(leader.leader_id, old_location, leader.location))

    if not mission.repeatable and mission.id in state.mission_hands[faction]:
        state.mission_hands[faction].remove(mission.id)

    state.add_log(f"{leader.name} completes {mission.display_name}: {message}")
    events.insert(0, mission_resolved(faction, leader.leader_id, mission.id, assignment.target_system, message))

    # Missions can reveal the base or clear it of ground forces
    if _check_and_declare_victory(state, definitions, events, include_timeout=False):
        return events

    events.extend(_advance_command_turn(state, definitions, rng))
    return events


def _handle_move_units(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Move units (and optionally a leader) between adjacent systems.
    Validates:
    - Both systems exist and are adjacent
    - A free leader of the faction is at the origin or the destination
    - Units are given, are the faction's, sit in the origin and are not structures
    - The travelling leader, if any, is free and at the origin

    Starts a combat when the destination ends up with opposing forces.
    """
    faction = action.faction
    from_id = action.payload.get("from")
    to_id = action.payload.get("to")
    unit_instance_ids = list(action.payload.get("unit_instance_ids", []))
    leader_id = action.payload.get("leader_id")

    if from_id not in state.systems or to_id not in state.systems:
        raise RuleViolation(Rejection.UNKNOWN_SYSTEM, f"Invalid system: {from_id} or {to_id}")
    if not is_adjacent(definitions, from_id, to_id):
        raise RuleViolation(Rejection.NOT_ADJACENT, f"{to_id} is not adjacent to {from_id}")
    if not has_commanding_leader(state, faction, from_id, to_id):
        raise RuleViolation(
            Rejection.NO_COMMANDING_LEADER,
            f"Need a free {_label(faction)} leader in {from_id} or {to_id} to command the move",
        )
    if not unit_instance_ids:
        raise RuleViolation(Rejection.NO_UNITS, "No units specified to move")

    units_by_id = {u.instance_id: u for u in state.systems[from_id].faction_units(faction)}
    for instance_id in unit_instance_ids:
        unit = units_by_id.get(instance_id)
        if unit is None:
            raise RuleViolation(Rejection.UNIT_NOT_FOUND, f"Unit {instance_id} not found in {from_id}")
        if definitions.unit(unit.unit_id).is_structure:
            raise RuleViolation(Rejection.UNIT_IMMOBILE, f"Unit {instance_id} is a structure and cannot move")

    leader = None
    if leader_id is not None:
        leader = state.leaders.get(leader_id)
        if (
            leader is None
            or leader.faction != faction
            or leader.captured
            or leader.on_mission
            or leader.location != from_id
        ):
            raise RuleViolation(Rejection.INVALID_LEADER, f"Leader {leader_id} cannot travel from {from_id}")

    events: list[GameEvent] = []
    moved = transfer_units(state, from_id, to_id, unit_instance_ids)
    events.append(units_moved(faction, from_id, to_id, moved))
    if leader is not None:
        leader.location = to_id
        events.append(leader_moved(leader.leader_id, from_id, to_id))

    from_name = definitions.system(from_id).display_name
    to_name = definitions.system(to_id).display_name
    state.add_log(f"{_label(faction)} moves {len(moved)} units from {from_name} to {to_name}.")

    if has_opposing_forces(state, definitions, to_id):
        combat = start_combat(state, definitions, to_id, attacker=faction)
        events.append(_combat_started_event(combat))
        return events

    events.extend(_advance_command_turn(state, definitions, rng))
    return events


def _handle_pass_command(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    faction = action.faction
    events = [command_passed(faction)]
    state.passes[faction] = True
    state.add_log(f"{_label(faction)} passes.")

    other = other_faction(faction)
    if state.passes[other] or not state.assignments[other]:
        events.extend(_start_refresh_phase(state, definitions, rng))
    else:
        state.active_player = other
    return events


def _advance_command_turn(
    state: GameState,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Hand control to the other faction unless it has nothing left to resolve.
    With no assignments left on either side, the refresh phase runs.
    """
    current = state.active_player
    other = other_faction(current)

    if not state.assignments[current] and not state.assignments[other]:
        return _start_refresh_phase(state, definitions, rng)
    if state.assignments[other]:
        state.active_player = other
    return []


# ===== Combat =====

def _combat_started_event(combat: ActiveCombat) -> GameEvent:
    return combat_started(
        combat.system_id,
        combat.attacker,
        combat.domain,
        {f: dict(counts) for f, counts in combat.initial_counts.items()},
    )


def _handle_initiate_combat(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
) -> list[GameEvent]:
    system_id = action.payload.get("system_id")
    if system_id not in state.systems:
        raise RuleViolation(Rejection.UNKNOWN_SYSTEM, f"Unknown system: {system_id}")
    combat = start_combat(state, definitions, system_id, attacker=action.faction)
    return [_combat_started_event(combat)]


def _handle_play_tactic_card(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
) -> list[GameEvent]:
    card = play_card(state, definitions, action.faction, action.payload.get("card_id"))
    return [tactic_card_played(action.faction, card.id, card.domain)]


def _handle_execute_combat_round(
    state: GameState,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Roll one round. When the last contested domain is fought out the combat is finalized,
    win conditions are re-checked and the command turn moves on.
    """
    system_id = state.active_combat.system_id
    outcome = execute_combat_round(state, definitions, rng)

    events = [combat_round_resolved(system_id, outcome.result.to_dict())]
    for unit in outcome.destroyed:
        events.append(unit_destroyed(unit.instance_id, unit.unit_id, unit.faction, system_id, "combat"))
    if outcome.domain_complete:
        events.append(domain_resolved(system_id, outcome.resolved_domain, outcome.domain_winner))

    if outcome.combat_over:
        events.extend(_after_combat(state, definitions, rng))
    return events


def _handle_retreat(
    state: GameState,
    action: Action,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    system_id = state.active_combat.system_id
    retreat_from_combat(state, action.faction)
    state.add_log(f"{_label(action.faction)} retreats from {definitions.system(system_id).display_name}.")
    events = [units_retreated(action.faction, system_id)]
    events.extend(_after_combat(state, definitions, rng))
    return events


def _after_combat(
    state: GameState,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    combat = state.last_combat
    events = [combat_ended(
        combat.system_id,
        dict(combat.domain_winners),
        combat.retreated,
        list(combat.destroyed_unit_ids),
    )]
    name = definitions.system(combat.system_id).display_name
    for domain, winner in combat.domain_winners.items():
        label = _label(winner) if winner else "Nobody"
        state.add_log(f"{label} wins the {domain} battle at {name}.")

    if _check_and_declare_victory(state, definitions, events, include_timeout=False):
        return events
    if state.phase == PHASE_COMMAND:
        events.extend(_advance_command_turn(state, definitions, rng))
    return events


# ===== Refresh phase =====

def _refill_mission_hands(state: GameState, definitions: GameDefinitions, rng: random.Random) -> None:
    """Draw up to the hand size; an empty deck is rebuilt from every mission not in hand."""
    hand_size = definitions.rules.hand_size
    for faction in FACTIONS:
        hand = state.mission_hands[faction]
        deck = state.mission_decks[faction]
        while len(hand) < hand_size and deck:
            hand.append(deck.pop())
        if not deck:
            pool = [m for m in definitions.missions_for(faction) if m not in hand]
            rng.shuffle(pool)
            state.mission_decks[faction] = pool


def _start_refresh_phase(
    state: GameState,
    definitions: GameDefinitions,
    rng: random.Random,
) -> list[GameEvent]:
    """
    Run the refresh pipeline in its fixed order:
    leaders return, hands refill, auto-production, queue advance, deployment,
    objective scoring, time marker, win check, then the next turn begins.
    """
    events: list[GameEvent] = []
    rules = definitions.rules
    old_phase = state.phase
    state.phase = PHASE_REFRESH
    events.append(phase_changed(old_phase, PHASE_REFRESH, state.active_player))
    state.add_log("Refresh Phase begins.")

    # 1. Retrieve leaders from missions; unresolved assignments are dropped with them
    for leader in state.leaders.values():
        leader.on_mission = False
        leader.exhausted = False
    state.assignments = {DOMINION: [], LIBERATION: []}

    # 2. Draw mission cards
    _refill_mission_hands(state, definitions, rng)

    # 3. Production
    built = run_auto_production(state, definitions, rng)
    for faction, units in built.items():
        if units:
            placements = [
                {"system_id": _system_of(state, u.instance_id), "instance_id": u.instance_id, "unit_id": u.unit_id}
                for u in units
            ]
            events.append(units_produced(faction, placements))

    # 4./5. Production queue
    advance_production_queue(state)
    for faction, item, unit in deploy_completed_production(state, definitions):
        events.append(production_deployed(faction, item.unit_id, item.system_id, unit.instance_id))

    # 6. Objectives
    for objective in check_objectives(state, definitions):
        events.append(objective_completed(objective.id, objective.points, state.reputation_marker))

    # 7. Time marker
    state.time_marker = min(state.turn, rules.max_turns)

    # 8. Win conditions
    if _check_and_declare_victory(state, definitions, events, include_timeout=True):
        return events

    # 9. Next turn
    state.turn += 1
    state.phase = PHASE_ASSIGNMENT
    state.active_player = LIBERATION
    state.passes = {DOMINION: False, LIBERATION: False}
    state.assigned_leader_ids = []
    state.assignment_count = {DOMINION: 0, LIBERATION: 0}
    state.add_log(f"Turn {state.turn} begins.")
    logger.debug("turn %s begins (reputation %s, time %s)", state.turn, state.reputation_marker, state.time_marker)

    events.append(phase_changed(PHASE_REFRESH, PHASE_ASSIGNMENT, state.active_player))
    events.append(turn_started(state.turn, state.active_player))
    return events


def _system_of(state: GameState, instance_id: str) -> str | None:
    for system_id, system in state.systems.items():
        if any(u.instance_id == instance_id for u in system.space_units + system.ground_units):
            return system_id
    return None


# ===== Victory =====

def check_victory(
    state: GameState,
    definitions: GameDefinitions,
    include_timeout: bool = True,
) -> tuple[str, str] | None:
    """
    Evaluate the win conditions in order.

    Returns:
        None if nobody has won, or (winner, reason) where reason is one of
        "base_destroyed", "reputation" or "timeout".
    """
    if state.base_revealed:
        base = state.systems[state.liberation_base]
        if not base.faction_units(LIBERATION, GROUND):
            return DOMINION, "base_destroyed"

    if state.reputation_marker <= state.time_marker:
        return LIBERATION, "reputation"

    if include_timeout and state.turn >= definitions.rules.max_turns:
        return DOMINION, "timeout"

    return None


VICTORY_MESSAGES = {
    "base_destroyed": "The Dominion has found and destroyed the Liberation base! Dominion wins!",
    "reputation": "The Liberation has inspired the galaxy! Liberation wins!",
    "timeout": "Time has run out. The Dominion maintains its iron grip. Dominion wins!",
}


def _check_and_declare_victory(
    state: GameState,
    definitions: GameDefinitions,
    events: list[GameEvent],
    include_timeout: bool,
) -> bool:
    result = check_victory(state, definitions, include_timeout=include_timeout)
    if result is None:
        return False
    winner, reason = result
    old_phase = state.phase
    state.winner = winner
    state.phase = PHASE_GAME_OVER
    state.add_log(VICTORY_MESSAGES[reason])
    events.append(phase_changed(old_phase, PHASE_GAME_OVER, state.active_player))
    events.append(victory(winner, reason, state.turn))
    logger.info("game over on turn %s: %s wins (%s)", state.turn, winner, reason)
    return True


def replay_from_actions(
    definitions: GameDefinitions,
    seed: int,
    actions: list[Action],
) -> tuple[GameState, list[GameEvent]]:
    """
    Replay a series of actions from a fresh game.
    Event sourcing: with the same seed, setup and actions the state is identical.

    Raises:
        RuleViolation: an action in the log is illegal at its point in the replay.
    """
    rng = random.Random(seed)
    current_state = initialize_game_state(definitions, rng)
    all_events: list[GameEvent] = []

    for action in actions:
        current_state, events = apply_action(current_state, action, definitions, rng)
        all_events.extend(events)

    return current_state, all_events
