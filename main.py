"""
Main entry point for the Galactic Uprising rules engine.
Demonstrates core functionality with a short scripted scenario.
"""

import logging

from uprising.engine import DOMINION, LIBERATION
from uprising.engine.actions import (
    assign_leader,
    pass_assignment,
    resolve_mission,
    move_units,
    execute_combat_round,
)
from uprising.engine.driver import play, passive_actor
from uprising.engine.game import GameEngine
from uprising.engine.reducer import replay_from_actions
from uprising.engine.utils import print_game_state


def show(result, label):
    if result.ok:
        print(f"✓ {label}")
        print(f"  Events: {[e.type for e in result.events]}")
    else:
        print(f"✗ {label} rejected: {result.reason} ({result.message})")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("Galactic Uprising Rules Engine")
    print("=" * 60)

    engine = GameEngine(seed=7)
    state = engine.state
    defs = engine.definitions

    print("\n[INITIAL STATE]")
    print_game_state(state, defs)

    # ===== SCENARIO 1: Assignment phase =====
    print("\n[SCENARIO 1: Assignment]")
    lib_leader = next(l for l in state.faction_leaders(LIBERATION) if not l.captured)
    lib_mission = next(
        m for m in state.mission_hands[LIBERATION]
        if lib_leader.skill(defs.mission(m).skill) >= defs.mission(m).min_skill
    )
    show(engine.apply(assign_leader(LIBERATION, lib_leader.leader_id, lib_mission)), f"{lib_leader.name} -> {lib_mission}")

    # Skill gate: a leader below the minimum skill is rejected
    gated = next((m for m in defs.missions_for(DOMINION) if defs.mission(m).min_skill >= 3), None)
    if gated and gated in engine.state.mission_hands[DOMINION]:
        weak = next(l for l in engine.state.faction_leaders(DOMINION) if l.skill(defs.mission(gated).skill) < 3)
        show(engine.apply(assign_leader(DOMINION, weak.leader_id, gated)), f"{weak.name} -> {gated}")

    show(engine.apply(pass_assignment(DOMINION)), "Dominion passes")
    show(engine.apply(pass_assignment(LIBERATION)), "Liberation passes")
    print(f"Phase is now {engine.state.phase}, {engine.state.active_player} to act")

    # ===== SCENARIO 2: Command phase =====
    print("\n[SCENARIO 2: Command]")
    show(engine.apply(resolve_mission(LIBERATION)), "Liberation resolves its mission")
    for entry in engine.state.log[-2:]:
        print(f"  log: {entry.message}")

    # ===== SCENARIO 3: Move a fleet, fight if it meets the enemy =====
    print("\n[SCENARIO 3: Combat]")
    if not engine.state.game_over and engine.state.phase == "command":
        faction = engine.state.active_player
        leader = next(
            (l for l in engine.state.faction_leaders(faction) if l.location and not l.captured),
            None,
        )
        if leader is not None:
            origin = leader.location
            targets = engine.get_adjacent_systems(origin)
            movers = [u.instance_id for u in engine.get_system_units(origin, faction)["space"]]
            if movers and targets:
                show(engine.apply(move_units(faction, origin, targets[0], movers, leader.leader_id)),
                     f"{faction} moves {len(movers)} ships {origin} -> {targets[0]}")
        while engine.state.active_combat is not None:
            result = engine.apply(execute_combat_round(faction))
            round_event = next(e for e in result.events if e.type == "combat_round_resolved")
            print(f"  round {round_event.payload['round_number']} {round_event.payload['domain']}: "
                  f"hits {round_event.payload['effective_hits']}")
    print(f"Unit totals: Dominion {engine.get_total_units(DOMINION)}, Liberation {engine.get_total_units(LIBERATION)}")

    # ===== SCENARIO 4: Play out the rest passively =====
    print("\n[SCENARIO 4: Passive play to the end]")
    winner = play(engine, {DOMINION: passive_actor, LIBERATION: passive_actor})
    print(f"Winner: {winner} on turn {engine.state.turn}")
    print(f"Reputation {engine.state.reputation_marker}, time {engine.state.time_marker}")

    # ===== SCENARIO 5: Replay =====
    print("\n[SCENARIO 5: Replay from seed + action log]")
    replayed, events = replay_from_actions(defs, engine.seed, engine.action_log)
    print(f"Replayed {len(engine.action_log)} actions ({len(events)} events)")
    print(f"Replay matches: {replayed.to_dict() == engine.state.to_dict()}")

    print("\n[FINAL STATE]")
    print_game_state(engine.state, defs)


if __name__ == "__main__":
    main()
