"""
Tests for read-only queries: board lookups, validation and the summary view.
"""

import pytest

from conftest import clear_units, enter_command_phase, place
from uprising.engine import DOMINION, LIBERATION
from uprising.engine.actions import assign_leader, pass_assignment
from uprising.engine.errors import RuleViolation, UnknownDefinitionError


class TestBoardQueries:

    def test_adjacency_in_connection_order(self, engine):
        assert engine.get_adjacent_systems("fern_haven") == ["sylvan_prime", "emerald_gate", "azure_haven"]
        assert engine.get_adjacent_systems("tundra_base") == ["frost_haven", "ice_crown", "outpost_alpha"]

    def test_adjacency_is_symmetric(self, engine):
        for system_id in engine.definitions.systems:
            for neighbor in engine.get_adjacent_systems(system_id):
                assert system_id in engine.get_adjacent_systems(neighbor)

    def test_unknown_system_adjacency(self, engine):
        with pytest.raises(UnknownDefinitionError):
            engine.get_adjacent_systems("nowhere")

    def test_system_units_split_by_roster(self, engine):
        units = engine.get_system_units("throne_world", DOMINION)
        assert [u.unit_id for u in units["space"]] == [
            "dom_capital", "dom_cruiser", "dom_cruiser", "dom_fighter", "dom_fighter", "dom_fighter",
        ]
        assert len(units["ground"]) == 4
        assert engine.get_system_units("throne_world", LIBERATION) == {"space": [], "ground": []}

    def test_unknown_system_units(self, engine):
        with pytest.raises(RuleViolation):
            engine.get_system_units("nowhere", DOMINION)

    def test_leaders_in_system_skips_captured(self, engine):
        assert [l.leader_id for l in engine.get_leaders_in_system("throne_world", DOMINION)] == ["dom_l1", "dom_l2"]
        engine.state.leaders["dom_l1"].captured = True
        assert [l.leader_id for l in engine.get_leaders_in_system("throne_world", DOMINION)] == ["dom_l2"]

    def test_total_units_at_start(self, engine):
        assert engine.get_total_units(DOMINION) == 26
        assert engine.get_total_units(LIBERATION) == 12

    def test_opposing_forces(self, engine):
        clear_units(engine.state, "fern_haven")
        place(engine, engine.definitions, "fern_haven", "dom_fighter")
        place(engine, engine.definitions, "fern_haven", "lib_trooper")
        # Different domains never meet
        assert not engine.has_opposing_forces("fern_haven")
        place(engine, engine.definitions, "fern_haven", "dom_trooper")
        assert engine.has_opposing_forces("fern_haven")

    def test_unit_instance_ids_are_sequential(self, engine):
        ids = [u.instance_id for u in engine.get_system_units("throne_world", DOMINION)["space"]]
        assert ids[0] == "dominion_dom_capital_001"
        assert ids[1] == "dominion_dom_cruiser_002"


class TestEligibleLeaders:

    def test_lists_missions_each_leader_can_take(self, engine):
        engine.state.mission_hands[LIBERATION] = ["lib_m9", "lib_m2"]
        eligible = {l["leader_id"]: l["missions"] for l in engine.get_eligible_leaders(LIBERATION)}
        assert eligible["lib_l1"] == ["lib_m9", "lib_m2"]
        assert eligible["lib_l5"] == ["lib_m2"]
        assert eligible["lib_l3"] == []

    def test_assigned_and_captured_leaders_drop_out(self, engine):
        engine.state.mission_hands[LIBERATION] = ["lib_m2"]
        engine.assign_leader("lib_l2", "lib_m2")
        engine.state.leaders["lib_l3"].captured = True
        ids = [l["leader_id"] for l in engine.get_eligible_leaders(LIBERATION)]
        assert "lib_l2" not in ids
        assert "lib_l3" not in ids
        assert "lib_l1" in ids


class TestTacticCardQuery:

    def test_empty_without_combat(self, engine):
        assert engine.get_available_tactic_cards(LIBERATION) == []

    def test_cards_for_current_domain(self, engine):
        enter_command_phase(engine, {DOMINION: [("dom_l1", "dom_m2", "bloom_station")]})
        clear_units(engine.state, "fern_haven")
        place(engine, engine.definitions, "fern_haven", "dom_trooper")
        place(engine, engine.definitions, "fern_haven", "lib_trooper")
        engine.state.tactic_cards[LIBERATION] = ["lac1", "lac3", "lac4"]
        engine.initiate_combat("fern_haven")

        cards = engine.get_available_tactic_cards(LIBERATION)

        assert [c["id"] for c in cards] == ["lac3", "lac4"]
        assert cards[0] == {
            "id": "lac3",
            "display_name": "Ambush",
            "domain": "ground",
            "text": "Add 2 black dice. Enemy cannot block.",
        }


class TestValidation:

    def test_valid_action(self, engine):
        result = engine.validate(pass_assignment(LIBERATION))
        assert result.valid
        assert result.reason is None

    def test_invalid_action_reports_reason(self, engine):
        result = engine.validate(pass_assignment(DOMINION))
        assert not result.valid
        assert result.reason == "not_your_turn"
        assert result.to_dict()["valid"] is False

    def test_validation_has_no_side_effects(self, engine):
        engine.state.mission_hands[LIBERATION] = ["lib_m2"]
        before = engine.state.to_dict()
        rng_state = engine.rng.getstate()

        assert engine.validate(assign_leader(LIBERATION, "lib_l2", "lib_m2")).valid

        assert engine.state.to_dict() == before
        assert engine.rng.getstate() == rng_state
        assert engine.action_log == []

    def test_available_action_types_by_phase(self, engine):
        assert engine.available_actions() == ["assign_leader", "pass_assignment"]
        enter_command_phase(engine)
        assert engine.available_actions() == ["resolve_mission", "move_units", "pass_command", "initiate_combat"]


class TestSummary:

    def test_summary_hides_base_until_revealed(self, engine):
        summary = engine.summary()
        assert summary["liberation_base"] is None
        assert summary["base_revealed"] is False
        assert summary["turn"] == 1
        assert summary["max_turns"] == 14
        assert summary["reputation_marker"] == 30
        assert summary["unit_counts"] == {DOMINION: 26, LIBERATION: 12}
        assert len(summary["current_objectives"]) == 3

        engine.state.base_revealed = True
        assert engine.summary()["liberation_base"] == engine.state.liberation_base

    def test_summary_reports_combat(self, engine):
        enter_command_phase(engine)
        clear_units(engine.state, "fern_haven")
        place(engine, engine.definitions, "fern_haven", "dom_fighter")
        place(engine, engine.definitions, "fern_haven", "lib_fighter")
        engine.initiate_combat("fern_haven")
        summary = engine.summary()
        assert summary["active_combat"] == "fern_haven"
        assert summary["available_actions"] == ["play_tactic_card", "execute_combat_round", "retreat"]
