"""
End-to-end scenarios: every way the game can end, the automated driver and replay.
"""

import pytest

from conftest import ScriptedRandom, clear_units, enter_command_phase, place
from uprising.engine import DOMINION, LIBERATION, PHASE_GAME_OVER
from uprising.engine.actions import execute_combat_round, pass_command, play_tactic_card, retreat
from uprising.engine.driver import acting_faction, passive_actor, play
from uprising.engine.errors import RuleViolation
from uprising.engine.game import GameEngine
from uprising.engine.reducer import VICTORY_MESSAGES, check_victory, replay_from_actions

PASSIVE = {DOMINION: passive_actor, LIBERATION: passive_actor}


def victory_event(result):
    return next(e for e in result.events if e.type == "victory")


class TestTimeout:
    """Dominion holds on until the last turn."""

    def test_passive_game_ends_on_turn_14(self, engine):
        for objectives in (engine.state.current_objectives, engine.state.objective_deck):
            if "obj14" in objectives:
                objectives.remove("obj14")

        winner = play(engine, PASSIVE)

        state = engine.state
        assert winner == DOMINION
        assert state.phase == PHASE_GAME_OVER
        assert state.turn == 14
        assert state.time_marker == 14
        assert state.reputation_marker == 30
        assert state.log[-1].message == VICTORY_MESSAGES["timeout"]

    def test_hidden_base_scores_survival(self, engine):
        engine.state.current_objectives = ["obj14"]
        engine.state.objective_deck = []

        play(engine, PASSIVE)

        assert engine.state.winner == DOMINION
        assert engine.state.completed_objectives == ["obj14"]
        assert engine.state.reputation_marker == 27


class TestReputation:
    """Liberation wins once reputation falls to the time marker."""

    def test_objective_drops_reputation_to_time(self, engine):
        engine.state.reputation_marker = 3
        engine.state.current_objectives = ["obj8"]
        engine.state.objective_deck = []
        engine.state.stats.dominion_leaders_captured = 1
        enter_command_phase(engine)

        result = engine.pass_command()

        state = engine.state
        assert state.reputation_marker == 1
        assert state.time_marker == 1
        assert state.winner == LIBERATION
        assert state.phase == PHASE_GAME_OVER
        assert victory_event(result).payload == {"winner": LIBERATION, "reason": "reputation", "turn": 1}

    def test_time_catches_up_with_reputation(self, engine):
        engine.state.reputation_marker = 2
        engine.state.current_objectives = []
        engine.state.objective_deck = []

        assert play(engine, PASSIVE) == LIBERATION
        assert engine.state.turn == 2

    def test_no_actions_after_game_over(self, engine):
        engine.state.reputation_marker = 1
        engine.state.current_objectives = []
        play(engine, PASSIVE)

        result = engine.apply(pass_command(engine.state.active_player))

        assert result.reason == "game_over"
        assert engine.available_actions() == []


class TestBaseDestroyed:
    """Dominion wins when the revealed base has no ground forces left."""

    @pytest.fixture
    def exposed_base(self, engine):
        state = engine.state
        base = state.liberation_base
        state.base_revealed = True
        clear_units(state, base)
        place(engine, engine.definitions, base, "lib_trooper", 2)
        return engine, base

    def test_bombardment_wipes_out_base(self, exposed_base):
        engine, base = exposed_base
        enter_command_phase(engine, {
            DOMINION: [("dom_l2", "dom_m4", base)],
            LIBERATION: [("lib_l1", "lib_m9", base)],
        }, active=DOMINION)

        result = engine.resolve_mission()

        assert engine.state.winner == DOMINION
        assert engine.state.phase == PHASE_GAME_OVER
        assert victory_event(result).payload["reason"] == "base_destroyed"
        # Liberation never got to resolve its mission
        assert len(engine.state.assignments[LIBERATION]) == 1

    def test_surviving_garrison_keeps_game_going(self, exposed_base):
        engine, base = exposed_base
        place(engine, engine.definitions, base, "lib_trooper")
        enter_command_phase(engine, {DOMINION: [("dom_l2", "dom_m4", base)]}, active=DOMINION)

        engine.resolve_mission()

        assert engine.state.winner is None
        assert engine.state.turn == 2

    def test_structure_still_counts_as_garrison(self, exposed_base):
        engine, base = exposed_base
        system = engine.state.systems[base]
        system.ground_units.clear()
        place(engine, engine.definitions, base, "lib_shield")
        assert check_victory(engine.state, engine.definitions, include_timeout=False) is None

        system.ground_units.clear()
        assert check_victory(engine.state, engine.definitions, include_timeout=False) == (DOMINION, "base_destroyed")

    def test_ground_battle_at_base(self, definitions):
        engine = GameEngine(definitions=definitions, rng=ScriptedRandom(seed=11))
        state = engine.state
        base = state.liberation_base
        state.base_revealed = True
        clear_units(state, base)
        place(engine, definitions, base, "lib_trooper")
        place(engine, definitions, base, "dom_armor")
        enter_command_phase(engine, active=DOMINION)
        assert engine.initiate_combat(base).ok

        # Dominion: one red hit. Liberation: trooper plus Commander Astra's bonus die, both miss.
        engine.rng.queue_rolls(0, 3, 3)
        result = engine.execute_combat_round()

        assert engine.state.winner == DOMINION
        assert victory_event(result).payload["reason"] == "base_destroyed"
        assert engine.state.active_combat is None

    def test_hidden_empty_base_is_safe(self, engine):
        clear_units(engine.state, engine.state.liberation_base)
        enter_command_phase(engine)
        engine.pass_command()
        assert engine.state.winner is None
        assert engine.state.turn == 2


class TestDriver:
    """Automated play loop."""

    def test_step_limit(self, engine):
        assert play(engine, PASSIVE, max_steps=3) is None
        assert not engine.state.game_over
        assert len(engine.action_log) == 3

    def test_pacing_hook_runs_between_actions(self, engine):
        calls = []
        play(engine, PASSIVE, pacing=lambda: calls.append(1), max_steps=4)
        assert len(calls) == 4

    def test_illegal_actor_raises(self, engine):
        def stubborn(engine, faction):
            return pass_command(faction)

        with pytest.raises(RuleViolation) as excinfo:
            play(engine, {DOMINION: stubborn, LIBERATION: stubborn})
        assert excinfo.value.code.value == "wrong_phase"

    def test_attacker_acts_during_combat(self, engine):
        enter_command_phase(engine, {DOMINION: [("dom_l1", "dom_m2", "bloom_station")]})
        clear_units(engine.state, "fern_haven")
        place(engine, engine.definitions, "fern_haven", "dom_cruiser")
        place(engine, engine.definitions, "fern_haven", "lib_fighter")
        engine.initiate_combat("fern_haven")

        assert acting_faction(engine) == LIBERATION
        action = passive_actor(engine, LIBERATION)
        assert action.type == "retreat"
        assert engine.apply(action).ok
        assert engine.state.active_combat is None

    @pytest.fixture
    def dominion_attack(self, engine):
        enter_command_phase(engine, active=DOMINION)
        clear_units(engine.state, "fern_haven")
        place(engine, engine.definitions, "fern_haven", "dom_cruiser", 2)
        place(engine, engine.definitions, "fern_haven", "lib_fighter", 2)
        assert engine.initiate_combat("fern_haven").ok
        return engine

    def test_defender_may_retreat(self, dominion_attack):
        engine = dominion_attack
        asked = []

        def roller(engine, faction):
            asked.append(faction)
            return execute_combat_round(faction)

        def runner(engine, faction):
            asked.append(faction)
            return retreat(faction)

        play(engine, {DOMINION: roller, LIBERATION: runner}, max_steps=1)

        assert asked == [LIBERATION]
        assert engine.state.active_combat is None
        assert engine.action_log[-1].type == "retreat"

    def test_defender_plays_card_before_the_roll(self, dominion_attack):
        engine = dominion_attack
        engine.state.tactic_cards[LIBERATION] = ["lac1"]

        def card_player(engine, faction):
            cards = engine.get_available_tactic_cards(faction)
            return play_tactic_card(faction, cards[0]["id"]) if cards else None

        play(engine, {DOMINION: lambda engine, faction: None, LIBERATION: card_player}, max_steps=2)

        assert [a.type for a in engine.action_log[-2:]] == ["play_tactic_card", "execute_combat_round"]
        assert engine.action_log[-2].faction == LIBERATION
        assert engine.action_log[-1].faction == DOMINION

    def test_declining_defender_lets_round_proceed(self, dominion_attack):
        engine = dominion_attack
        asked = []

        def decline(engine, faction):
            asked.append(faction)
            return None

        play(engine, {DOMINION: decline, LIBERATION: decline}, max_steps=1)

        assert asked == [LIBERATION, DOMINION]
        assert engine.action_log[-1].type == "execute_combat_round"


class TestReplay:
    """Same seed and actions give the same game."""

    def test_same_seed_same_setup(self, definitions):
        first = GameEngine(definitions=definitions, seed=99)
        second = GameEngine(definitions=definitions, seed=99)
        assert first.state.to_dict() == second.state.to_dict()

    def test_replay_matches_live_game(self, engine):
        eligible = next(l for l in engine.get_eligible_leaders() if l["missions"])
        assert engine.assign_leader(eligible["leader_id"], eligible["missions"][0]).ok
        engine.pass_assignment()
        engine.pass_assignment()
        while engine.state.assignments[engine.state.active_player]:
            assert engine.resolve_mission().ok
        play(engine, PASSIVE, max_steps=20)

        assert engine.replay().to_dict() == engine.state.to_dict()

    def test_replay_events(self, engine):
        engine.pass_assignment()
        engine.pass_assignment()
        engine.pass_command()

        state, events = replay_from_actions(engine.definitions, 42, engine.action_log)

        assert state.turn == 2
        assert "turn_started" in [e.type for e in events]

    def test_unseeded_game_cannot_replay(self, scripted_engine):
        with pytest.raises(ValueError):
            scripted_engine.replay()

    def test_new_game_resets(self, engine):
        engine.pass_assignment()
        engine.new_game(seed=42)
        assert engine.action_log == []
        assert engine.state.to_dict() == GameEngine(definitions=engine.definitions, seed=42).state.to_dict()
