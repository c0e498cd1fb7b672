"""
Tests for loading setup data from data/setups/<setup_id>/.
"""

import json
import shutil

import pytest

from uprising.engine import DOMINION, LIBERATION
from uprising.engine.definitions import (
    SETUPS_DIR,
    MissionEffect,
    list_setups,
    load_static_definitions,
)
from uprising.engine.errors import UnknownDefinitionError


@pytest.fixture
def setup_copy(tmp_path):
    """A writable copy of the standard setup."""
    target = tmp_path / "custom"
    shutil.copytree(SETUPS_DIR / "standard", target)
    return target


def edit_json(path, change):
    with open(path) as f:
        data = json.load(f)
    change(data)
    with open(path, "w") as f:
        json.dump(data, f)


class TestStandardSetup:

    def test_board_size(self, definitions):
        assert len(definitions.systems) == 32
        connections = sum(len(n) for n in definitions.adjacency.values()) // 2
        assert connections == 53

    def test_content_tables(self, definitions):
        assert len(definitions.missions_for(DOMINION)) == 10
        assert len(definitions.missions_for(LIBERATION)) == 10
        assert len(definitions.objectives) == 14
        assert len(definitions.leaders_for(LIBERATION)) == 6
        assert len(definitions.tactic_cards_for(DOMINION)) == 6

    def test_rules_from_manifest(self, definitions):
        rules = definitions.rules
        assert definitions.setup_id == "standard"
        assert rules.max_turns == 14
        assert rules.starting_reputation == 30
        assert rules.max_builds == {DOMINION: 3, LIBERATION: 2}
        assert rules.titan_unit == "dom_super"

    def test_unit_rosters(self, definitions):
        assert definitions.unit("lib_shield").is_structure
        assert definitions.unit("lib_shield").roster == "ground"
        assert definitions.unit("dom_fighter").light
        assert definitions.unit("dom_super").unique
        assert definitions.unit("dom_super").red_dice == 3

    def test_mission_effects_parsed(self, definitions):
        assert definitions.mission("lib_m9").effect is MissionEffect.GUERRILLA
        assert not definitions.mission("lib_m7").repeatable

    def test_unknown_ids(self, definitions):
        with pytest.raises(UnknownDefinitionError) as excinfo:
            definitions.unit("dom_dreadnought")
        assert isinstance(excinfo.value, KeyError)
        assert str(excinfo.value) == "Unknown unit type: 'dom_dreadnought'"
        with pytest.raises(UnknownDefinitionError):
            definitions.neighbors("nowhere")

    def test_default_setup(self):
        assert load_static_definitions().setup_id == "standard"


class TestSetupDiscovery:

    def test_list_setups(self):
        setups = {s["id"]: s["display_name"] for s in list_setups()}
        assert setups["standard"] == "Galactic Uprising (standard)"

    def test_unknown_setup(self):
        with pytest.raises(FileNotFoundError):
            load_static_definitions(setup_id="no_such_setup")


class TestBrokenData:

    def test_loads_from_directory(self, setup_copy):
        edit_json(setup_copy / "manifest.json", lambda m: m["rules"].update(max_turns=10))
        definitions = load_static_definitions(data_dir=setup_copy)
        assert definitions.rules.max_turns == 10

    def test_missing_file(self, setup_copy):
        (setup_copy / "leaders.json").unlink()
        with pytest.raises(FileNotFoundError, match="leaders.json"):
            load_static_definitions(data_dir=setup_copy)

    def test_unknown_mission_effect(self, setup_copy):
        edit_json(setup_copy / "missions.json", lambda m: m["lib_m2"].update(effect="teleport"))
        with pytest.raises(ValueError, match="teleport"):
            load_static_definitions(data_dir=setup_copy)

    def test_unknown_skill(self, setup_copy):
        edit_json(setup_copy / "missions.json", lambda m: m["lib_m2"].update(skill="charm"))
        with pytest.raises(ValueError, match="charm"):
            load_static_definitions(data_dir=setup_copy)

    def test_connection_to_unknown_system(self, setup_copy):
        edit_json(setup_copy / "connections.json", lambda c: c.append(["tundra_base", "atlantis"]))
        with pytest.raises(ValueError, match="atlantis"):
            load_static_definitions(data_dir=setup_copy)
