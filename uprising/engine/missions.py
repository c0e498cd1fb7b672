"""
Mission-effect interpreter.

MISSION_EFFECTS maps every MissionEffect to a handler. A handler reads and writes the state
through a MissionContext and returns a human-readable outcome. Handlers never raise for a
mission that cannot be carried out: they return a message and leave the state untouched.
"""

import random
from dataclasses import dataclass
from typing import Callable

from uprising.engine import DOMINION, LIBERATION, NEUTRAL, SPACE, GROUND, other_faction
from uprising.engine.definitions import GameDefinitions, MissionDefinition, MissionEffect, SystemDefinition
from uprising.engine.movement import get_adjacent_systems, relocate_faction_units
from uprising.engine.state import GameState, Leader, SystemState, ProductionItem
from uprising.engine.utils import spawn_units, remove_unit


@dataclass
class MissionContext:
    state: GameState
    definitions: GameDefinitions
    rng: random.Random
    faction: str
    leader: Leader
    mission: MissionDefinition
    target_system: str
    origin: str | None  # leader location before the mission resolved

    @property
    def system(self) -> SystemState:
        return self.state.systems[self.target_system]

    @property
    def system_def(self) -> SystemDefinition:
        return self.definitions.system(self.target_system)

    @property
    def name(self) -> str:
        return self.system_def.display_name

    @property
    def enemy(self) -> str:
        return other_faction(self.faction)


MissionHandler = Callable[[MissionContext], str]


# ===== Reconnaissance =====

def _draw_probe(ctx: MissionContext) -> tuple[str, bool]:
    """Pop the top probe card. Returns (system_id, base_found)."""
    state = ctx.state
    system_id = state.probe_deck.pop()
    state.probe_discards.append(system_id)
    state.systems[system_id].probed = True
    if system_id == state.liberation_base:
        state.base_revealed = True
        state.add_log("THE HIDDEN BASE HAS BEEN FOUND!")
        return system_id, True
    return system_id, False


def _probe(ctx: MissionContext) -> str:
    if not ctx.state.probe_deck:
        return "No more probe cards."
    system_id, found = _draw_probe(ctx)
    name = ctx.definitions.system(system_id).display_name
    if found:
        return f"Probe reveals {name} - BASE FOUND!"
    return f"Probed {name} - no base found."


def _intel_sweep(ctx: MissionContext) -> str:
    drawn = []
    for _ in range(2):
        if not ctx.state.probe_deck:
            break
        system_id, found = _draw_probe(ctx)
        name = ctx.definitions.system(system_id).display_name
        if found:
            return f"Intel sweep reveals BASE at {name}!"
        drawn.append(name)
    if not drawn:
        return "No more probe cards."
    return f"Intel sweep: probed {', '.join(drawn)} - no base."


def _covert_op(ctx: MissionContext) -> str:
    top = ctx.state.probe_deck[-ctx.definitions.rules.probe_peek:]
    if not top:
        return "Covert intel: the probe deck is empty."
    names = [ctx.definitions.system(sid).display_name for sid in reversed(top)]
    return f"Covert intel: next probes will check {', '.join(names)}."


# ===== Loyalty =====

def _shift_loyalty(system: SystemState, toward: str) -> bool:
    """Neutral -> toward, opposing -> neutral. Never flips straight to the other side."""
    if system.loyalty == NEUTRAL:
        system.loyalty = toward
        return True
    if system.loyalty == other_faction(toward):
        system.loyalty = NEUTRAL
        return True
    return False


def _sway(ctx: MissionContext, toward: str) -> str:
    before = ctx.system.loyalty
    if not _shift_loyalty(ctx.system, toward):
        return f"{ctx.name} already loyal."
    if before == NEUTRAL:
        return f"{ctx.name} now loyal to {toward.capitalize()}."
    return f"{ctx.name} loyalty weakened to neutral."


def _sway_dominion(ctx: MissionContext) -> str:
    return _sway(ctx, DOMINION)


def _sway_liberation(ctx: MissionContext) -> str:
    return _sway(ctx, LIBERATION)


def _propaganda(ctx: MissionContext) -> str:
    count = 0
    for system in ctx.state.systems.values():
        if count >= 2:
            break
        if system.loyalty == NEUTRAL:
            system.loyalty = ctx.faction
            count += 1
    return f"Propaganda shifts {count} systems to {ctx.faction.capitalize()} loyalty."


def _subjugate(ctx: MissionContext) -> str:
    if not ctx.system.faction_units(ctx.faction, GROUND):
        return "No ground forces to subjugate with."
    ctx.system.loyalty = ctx.faction
    ctx.system.subjugated = True
    return f"{ctx.name} has been subjugated."


# ===== Force =====

def _bombardment(ctx: MissionContext) -> str:
    enemy_ground = ctx.system.faction_units(ctx.enemy, GROUND)
    destroyed = 0
    while destroyed < 2 and enemy_ground:
        target = enemy_ground.pop()
        remove_unit(ctx.system, target.instance_id)
        destroyed += 1
    return f"Bombardment destroys {destroyed} enemy ground units."


def _hit_and_run(ctx: MissionContext) -> str:
    enemy_ships = ctx.system.faction_units(ctx.enemy, SPACE)
    if not enemy_ships:
        return "No enemy ships to attack."
    target = enemy_ships[0]
    remove_unit(ctx.system, target.instance_id)
    return f"Hit and run! Destroyed enemy {ctx.definitions.unit(target.unit_id).display_name}."


def _guerrilla(ctx: MissionContext) -> str:
    enemy_ships = ctx.system.faction_units(ctx.enemy, SPACE)
    if not enemy_ships:
        return "No enemy ships to strike."
    lights = [
        u for u in enemy_ships
        if ctx.definitions.unit(u.unit_id).light or u.max_health == 1
    ]
    for target in lights[:2]:
        remove_unit(ctx.system, target.instance_id)
    if lights:
        return f"Guerrilla strike destroys {len(lights[:2])} enemy ships!"
    # No light targets: wound the first ship that survives the hit
    target = next((u for u in enemy_ships if u.remaining_health > 1), None)
    if target is None:
        return "Enemy ships are too battered to strike without destroying them."
    target.damage += 1
    return f"Guerrilla strike damages {ctx.definitions.unit(target.unit_id).display_name}!"


# ===== Construction =====

def _can_build_at(ctx: MissionContext) -> bool:
    return ctx.system.loyalty == ctx.faction and ctx.system_def.has_production


def _build_titan(ctx: MissionContext) -> str:
    rules = ctx.definitions.rules
    queued = any(
        item.unit_id == rules.titan_unit
        for items in ctx.state.production_queue.values()
        for item in items
    )
    if ctx.state.titan_built or queued:
        return "Titan already built or under construction."
    if not _can_build_at(ctx):
        return "Cannot build here - need loyal system with production."
    ctx.state.production_queue[ctx.faction].append(ProductionItem(
        unit_id=rules.titan_unit,
        system_id=ctx.target_system,
        turns_left=rules.titan_build_turns,
    ))
    return f"Titan construction begins! ({rules.titan_build_turns} turns)"


def _build_structure(ctx: MissionContext) -> str:
    if not _can_build_at(ctx):
        return "Cannot build here - need loyal system with production."
    unit_id = ctx.definitions.rules.structure_units[ctx.faction]
    spawn_units(ctx.state, ctx.definitions, ctx.target_system, unit_id)
    return f"{ctx.definitions.unit(unit_id).display_name} built at {ctx.name}."


def _sabotage(ctx: MissionContext) -> str:
    enemy_queue = ctx.state.production_queue[ctx.enemy]
    if not enemy_queue:
        return "Nothing to sabotage."
    removed = enemy_queue.pop()
    return f"Sabotaged {ctx.definitions.unit(removed.unit_id).display_name} production!"


def _uprising(ctx: MissionContext) -> str:
    if ctx.system.loyalty == ctx.enemy:
        return f"Cannot inspire uprising in a {ctx.enemy.capitalize()}-loyal world."
    rules = ctx.definitions.rules
    spawn_units(ctx.state, ctx.definitions, ctx.target_system, rules.uprising_unit, rules.uprising_count)
    unit_name = ctx.definitions.unit(rules.uprising_unit).display_name
    return f"Uprising! {rules.uprising_count} {unit_name}s rally at {ctx.name}."


# ===== Espionage =====

def _capture(ctx: MissionContext) -> str:
    state = ctx.state
    targets = [
        l for l in state.faction_leaders(ctx.enemy)
        if l.location == ctx.target_system and not l.captured
    ]
    if not targets:
        return "No enemy leaders to capture here."
    target = targets[0]
    if ctx.leader.skill("intel") < target.skill("intel"):
        return f"Capture attempt failed - {target.name} evaded."
    target.captured = True
    target.location = None
    target.on_mission = False
    state.captured_leaders.append(target.leader_id)
    # A captured leader's pending mission is lost
    state.assignments[ctx.enemy] = [
        a for a in state.assignments[ctx.enemy] if a.leader_id != target.leader_id
    ]
    if ctx.faction == LIBERATION:
        state.stats.dominion_leaders_captured += 1
    return f"{target.name} has been captured!"


# ===== Logistics =====

def _logistics_move(ctx: MissionContext) -> str:
    moved = 0
    for neighbor in get_adjacent_systems(ctx.definitions, ctx.target_system)[:2]:
        moved += relocate_faction_units(ctx.state, ctx.definitions, neighbor, ctx.target_system, ctx.faction)
    return f"Supply lines move {moved} units to {ctx.name}."


def _rapid_move(ctx: MissionContext) -> str:
    neighbors = get_adjacent_systems(ctx.definitions, ctx.target_system)
    if not neighbors:
        return "No adjacent systems for rapid move."
    destination = neighbors[0]
    moved = relocate_faction_units(ctx.state, ctx.definitions, ctx.target_system, destination, ctx.faction)
    return f"Rapid mobilization moves {moved} units to {ctx.definitions.system(destination).display_name}."


def _relocate_base(ctx: MissionContext) -> str:
    state = ctx.state
    rules = ctx.definitions.rules
    candidates = [
        sid for sid, system in state.systems.items()
        if system.loyalty != DOMINION
        and sid != state.liberation_base
        and ctx.definitions.system(sid).region in rules.base_regions
    ]
    if not candidates:
        return "No valid relocation targets."
    new_base = ctx.rng.choice(candidates)
    relocate_faction_units(
        state, ctx.definitions, state.liberation_base, new_base, LIBERATION, include_structures=True,
    )
    state.liberation_base = new_base
    state.base_revealed = False
    state.systems[new_base].loyalty = LIBERATION
    return "Base relocated to a new hidden location."


def _recruit(ctx: MissionContext) -> str:
    state = ctx.state
    state.recruit_counter += 1
    leader_id = f"{ctx.faction}_recruit_{state.recruit_counter:02d}"
    name = ctx.rng.choice(ctx.definitions.rules.recruit_names)
    state.leaders[leader_id] = Leader(
        leader_id=leader_id,
        name=name,
        faction=ctx.faction,
        skills={"diplomacy": 1, "intel": 1, "combat": 1, "logistics": 1},
        location=ctx.origin,
    )
    return f"{name} joins the {ctx.faction.capitalize()}!"


MISSION_EFFECTS: dict[MissionEffect, MissionHandler] = {
    MissionEffect.PROBE: _probe,
    MissionEffect.INTEL_SWEEP: _intel_sweep,
    MissionEffect.SWAY_DOMINION: _sway_dominion,
    MissionEffect.SWAY_LIBERATION: _sway_liberation,
    MissionEffect.PROPAGANDA: _propaganda,
    MissionEffect.BOMBARDMENT: _bombardment,
    MissionEffect.HIT_AND_RUN: _hit_and_run,
    MissionEffect.GUERRILLA: _guerrilla,
    MissionEffect.SUBJUGATE: _subjugate,
    MissionEffect.BUILD_TITAN: _build_titan,
    MissionEffect.BUILD_STRUCTURE: _build_structure,
    MissionEffect.CAPTURE: _capture,
    MissionEffect.LOGISTICS_MOVE: _logistics_move,
    MissionEffect.RAPID_MOVE: _rapid_move,
    MissionEffect.SABOTAGE: _sabotage,
    MissionEffect.COVERT_OP: _covert_op,
    MissionEffect.UPRISING: _uprising,
    MissionEffect.RELOCATE_BASE: _relocate_base,
    MissionEffect.RECRUIT: _recruit,
}


def execute_mission_effect(
    state: GameState,
    definitions: GameDefinitions,
    rng: random.Random,
    faction: str,
    leader: Leader,
    mission: MissionDefinition,
    target_system: str,
) -> str:
    """Run a mission's effect against the state and return the outcome message."""
    ctx = MissionContext(
        state=state,
        definitions=definitions,
        rng=rng,
        faction=faction,
        leader=leader,
        mission=mission,
        target_system=target_system,
        origin=leader.location,
    )
    return MISSION_EFFECTS[mission.effect](ctx)
