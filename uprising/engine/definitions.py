"""
Static definitions for systems, units, leaders, missions, objectives and tactic cards.
All setup data lives under data/setups/<setup_id>/: manifest.json (display name and rule constants),
regions.json, systems.json, connections.json, units.json, leaders.json, missions.json,
objectives.json, tactic_cards.json and starting_setup.json.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from uprising.engine import DOMINION, LIBERATION, SPACE, GROUND, STRUCTURE, SKILLS
from uprising.engine.errors import UnknownDefinitionError

DATA_DIR = Path(__file__).parent.parent / "data"
SETUPS_DIR = DATA_DIR / "setups"

REQUIRED_FILES = (
    "manifest.json",
    "systems.json",
    "connections.json",
    "units.json",
    "leaders.json",
    "missions.json",
    "objectives.json",
    "tactic_cards.json",
    "starting_setup.json",
)


class MissionEffect(str, Enum):
    PROBE = "probe"
    INTEL_SWEEP = "intel_sweep"
    SWAY_DOMINION = "sway_dominion"
    SWAY_LIBERATION = "sway_liberation"
    PROPAGANDA = "propaganda"
    BOMBARDMENT = "bombardment"
    HIT_AND_RUN = "hit_and_run"
    GUERRILLA = "guerrilla"
    SUBJUGATE = "subjugate"
    BUILD_TITAN = "build_titan"
    BUILD_STRUCTURE = "build_structure"
    CAPTURE = "capture"
    LOGISTICS_MOVE = "logistics_move"
    RAPID_MOVE = "rapid_move"
    SABOTAGE = "sabotage"
    COVERT_OP = "covert_op"
    UPRISING = "uprising"
    RELOCATE_BASE = "relocate_base"
    RECRUIT = "recruit"


class ObjectiveCheck(str, Enum):
    LOYALTY_OUTSIDE_CORE_3 = "loyalty_outside_core_3"
    WIN_GROUND_DEFENSE = "win_ground_defense"
    DESTROY_CAPITAL = "destroy_capital"
    LOYALTY_3_REGIONS = "loyalty_3_regions"
    CONTROL_3_PRODUCTION = "control_3_production"
    WIN_SPACE_VS_3PLUS = "win_space_vs_3plus"
    LOYALTY_5_SYSTEMS = "loyalty_5_systems"
    CAPTURE_DOM_LEADER = "capture_dom_leader"
    LOYALTY_CORE_WORLD = "loyalty_core_world"
    CONTROL_4_REGIONS = "control_4_regions"
    DESTROY_TITAN = "destroy_titan"
    LOYALTY_8_SYSTEMS = "loyalty_8_systems"
    DESTROY_5_UNITS_BATTLE = "destroy_5_units_battle"
    SURVIVE_10_TURNS = "survive_10_turns"


def _enum_value(enum_cls: type[Enum], raw: str, owner: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        raise ValueError(f"{owner}: unknown {enum_cls.__name__} '{raw}'") from None


def _default_setup_id() -> str:
    """Single place for default: uprising.config.DEFAULT_SETUP_ID."""
    from uprising.config import DEFAULT_SETUP_ID
    return DEFAULT_SETUP_ID


def _setup_dir(setup_id: str) -> Path:
    return SETUPS_DIR / setup_id


def _read_json(path: Path) -> Any:
    with open(path, "r") as f:
        return json.load(f)


def list_setups() -> list[dict]:
    """Return [{ id, display_name }, ...] for all setups (subdirs of data/setups/ with a manifest)."""
    out = []
    if not SETUPS_DIR.exists():
        return out
    for d in sorted(SETUPS_DIR.iterdir()):
        manifest_path = d / "manifest.json"
        if not d.is_dir() or not manifest_path.exists():
            continue
        manifest = _read_json(manifest_path)
        out.append({
            "id": manifest.get("id", d.name),
            "display_name": manifest.get("display_name", d.name),
        })
    return out


@dataclass
class UnitDefinition:
    """Defines immutable properties of a unit type."""
    id: str
    display_name: str
    faction: str
    domain: str  # "space", "ground" or "structure"
    health: int
    attack: dict[str, int]  # {"red": n, "black": n}
    light: bool = False
    unique: bool = False

    @property
    def is_structure(self) -> bool:
        return self.domain == STRUCTURE

    @property
    def roster(self) -> str:
        """Which per-system list holds this unit. Structures live with ground units."""
        return SPACE if self.domain == SPACE else GROUND

    @property
    def red_dice(self) -> int:
        return self.attack.get("red", 0)

    @property
    def black_dice(self) -> int:
        return self.attack.get("black", 0)


@dataclass
class SystemDefinition:
    """Defines immutable properties of a star system."""
    id: str
    display_name: str
    region: str
    loyalty: str  # starting loyalty: "dominion", "liberation" or "neutral"
    resources: dict[str, int]  # {"fleet": 1, "trooper": 1}
    has_production: bool
    x: float = 0.0  # map coordinates, presentation only
    y: float = 0.0


@dataclass
class LeaderDefinition:
    id: str
    display_name: str
    faction: str
    skills: dict[str, int]
    start_system: str | None  # None: starts at the hidden base


@dataclass
class MissionDefinition:
    id: str
    display_name: str
    faction: str
    skill: str
    min_skill: int
    effect: MissionEffect
    repeatable: bool = True
    description: str = ""


@dataclass
class ObjectiveDefinition:
    id: str
    display_name: str
    points: int
    tier: int
    check: ObjectiveCheck
    description: str = ""


@dataclass
class TacticCardDefinition:
    """A one-round combat modifier. Cards with only text carry no mechanical effect."""
    id: str
    display_name: str
    faction: str
    domain: str
    text: str = ""
    bonus: dict[str, int] = field(default_factory=dict)
    block: int = 0
    pierce: bool = False
    reroll: bool = False
    double_hits: bool = False


@dataclass
class GameRules:
    """Rule constants from the setup manifest."""
    max_turns: int = 14
    starting_reputation: int = 30
    hand_size: int = 4
    objectives_face_up: int = 3
    probe_peek: int = 3
    log_limit: int = 200
    max_builds: dict[str, int] = field(default_factory=lambda: {DOMINION: 3, LIBERATION: 2})
    titan_unit: str = "dom_super"
    titan_build_turns: int = 3
    structure_units: dict[str, str] = field(
        default_factory=lambda: {DOMINION: "dom_shield", LIBERATION: "lib_shield"}
    )
    uprising_unit: str = "lib_trooper"
    uprising_count: int = 2
    base_regions: list[str] = field(default_factory=lambda: ["outer1", "outer2", "rim"])
    core_region: str = "core"
    capital_units: list[str] = field(default_factory=lambda: ["dom_capital", "dom_super"])
    recruit_names: list[str] = field(default_factory=lambda: ["Agent Nova"])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameRules":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class GameDefinitions:
    """All static content for one setup, indexed by id."""
    setup_id: str
    display_name: str
    rules: GameRules
    regions: dict[str, str]
    systems: dict[str, SystemDefinition]
    adjacency: dict[str, list[str]]
    units: dict[str, UnitDefinition]
    leaders: dict[str, LeaderDefinition]
    missions: dict[str, MissionDefinition]
    objectives: dict[str, ObjectiveDefinition]
    tactic_cards: dict[str, TacticCardDefinition]
    production: dict[str, dict[str, list[str]]]  # faction -> resource -> unit ids
    starting_setup: dict[str, Any]

    def _lookup(self, table: dict, kind: str, key: str):
        try:
            return table[key]
        except KeyError:
            raise UnknownDefinitionError(kind, key) from None

    def unit(self, unit_id: str) -> UnitDefinition:
        return self._lookup(self.units, "unit type", unit_id)

    def system(self, system_id: str) -> SystemDefinition:
        return self._lookup(self.systems, "system", system_id)

    def leader(self, leader_id: str) -> LeaderDefinition:
        return self._lookup(self.leaders, "leader", leader_id)

    def mission(self, mission_id: str) -> MissionDefinition:
        return self._lookup(self.missions, "mission", mission_id)

    def objective(self, objective_id: str) -> ObjectiveDefinition:
        return self._lookup(self.objectives, "objective", objective_id)

    def tactic_card(self, card_id: str) -> TacticCardDefinition:
        return self._lookup(self.tactic_cards, "tactic card", card_id)

    def neighbors(self, system_id: str) -> list[str]:
        self.system(system_id)
        return list(self.adjacency.get(system_id, []))

    def missions_for(self, faction: str) -> list[str]:
        return [m.id for m in self.missions.values() if m.faction == faction]

    def leaders_for(self, faction: str) -> list[str]:
        return [l.id for l in self.leaders.values() if l.faction == faction]

    def tactic_cards_for(self, faction: str) -> list[str]:
        return [c.id for c in self.tactic_cards.values() if c.faction == faction]


def _build_adjacency(systems: dict[str, SystemDefinition], pairs: list[list[str]]) -> dict[str, list[str]]:
    """Undirected adjacency, neighbors kept in the order their connection is listed."""
    adjacency: dict[str, list[str]] = {system_id: [] for system_id in systems}
    for a, b in pairs:
        for src, dst in ((a, b), (b, a)):
            if src not in adjacency:
                raise ValueError(f"Connection references unknown system '{src}'")
            if dst not in adjacency[src]:
                adjacency[src].append(dst)
    return adjacency


def load_static_definitions(
    data_dir: Path | str | None = None,
    setup_id: str | None = None,
) -> GameDefinitions:
    """
    Load all static definitions of one setup.

    Args:
        data_dir: Path to a directory containing the setup JSON files.
        setup_id: If set, use data/setups/<setup_id>/ (ignored if data_dir is set).
            With neither, the configured default setup is used.

    Raises:
        FileNotFoundError: the setup directory or one of its files is missing.
        ValueError: the data references an unknown mission effect, objective check,
            skill or system.
    """
    if data_dir is not None:
        data_dir = Path(data_dir)
    else:
        data_dir = _setup_dir(setup_id or _default_setup_id())
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Setup not found: {data_dir}")
    for name in REQUIRED_FILES:
        if not (data_dir / name).exists():
            raise FileNotFoundError(f"{name} not found in setup: {data_dir}")

    manifest = _read_json(data_dir / "manifest.json")
    regions_path = data_dir / "regions.json"
    regions = {}
    if regions_path.exists():
        regions = {k: v.get("display_name", k) for k, v in _read_json(regions_path).items()}

    systems = {}
    for system_id, data in _read_json(data_dir / "systems.json").items():
        systems[system_id] = SystemDefinition(
            id=data["id"],
            display_name=data["display_name"],
            region=data["region"],
            loyalty=data["loyalty"],
            resources=dict(data.get("resources", {})),
            has_production=data.get("has_production", False),
            x=data.get("x", 0.0),
            y=data.get("y", 0.0),
        )

    units = {}
    for unit_id, data in _read_json(data_dir / "units.json").items():
        if data["domain"] not in (SPACE, GROUND, STRUCTURE):
            raise ValueError(f"Unit {unit_id}: unknown domain '{data['domain']}'")
        units[unit_id] = UnitDefinition(
            id=data["id"],
            display_name=data["display_name"],
            faction=data["faction"],
            domain=data["domain"],
            health=data["health"],
            attack=dict(data.get("attack", {})),
            light=data.get("light", False),
            unique=data.get("unique", False),
        )

    leaders = {}
    for leader_id, data in _read_json(data_dir / "leaders.json").items():
        leaders[leader_id] = LeaderDefinition(
            id=data["id"],
            display_name=data["display_name"],
            faction=data["faction"],
            skills={skill: data["skills"].get(skill, 0) for skill in SKILLS},
            start_system=data.get("start_system"),
        )

    missions = {}
    for mission_id, data in _read_json(data_dir / "missions.json").items():
        if data["skill"] not in SKILLS:
            raise ValueError(f"Mission {mission_id}: unknown skill '{data['skill']}'")
        missions[mission_id] = MissionDefinition(
            id=data["id"],
            display_name=data["display_name"],
            faction=data["faction"],
            skill=data["skill"],
            min_skill=data["min_skill"],
            effect=_enum_value(MissionEffect, data["effect"], f"Mission {mission_id}"),
            repeatable=data.get("repeatable", True),
            description=data.get("description", ""),
        )

    objectives = {}
    for objective_id, data in _read_json(data_dir / "objectives.json").items():
        objectives[objective_id] = ObjectiveDefinition(
            id=data["id"],
            display_name=data["display_name"],
            points=data["points"],
            tier=data.get("tier", 1),
            check=_enum_value(ObjectiveCheck, data["check"], f"Objective {objective_id}"),
            description=data.get("description", ""),
        )

    tactic_cards = {}
    for card_id, data in _read_json(data_dir / "tactic_cards.json").items():
        tactic_cards[card_id] = TacticCardDefinition(
            id=data["id"],
            display_name=data["display_name"],
            faction=data["faction"],
            domain=data["domain"],
            text=data.get("text", ""),
            bonus=dict(data.get("bonus", {})),
            block=data.get("block", 0),
            pierce=data.get("pierce", False),
            reroll=data.get("reroll", False),
            double_hits=data.get("double_hits", False),
        )

    starting_setup = _read_json(data_dir / "starting_setup.json")

    return GameDefinitions(
        setup_id=manifest.get("id", data_dir.name),
        display_name=manifest.get("display_name", data_dir.name),
        rules=GameRules.from_dict(manifest.get("rules", {})),
        regions=regions,
        systems=systems,
        adjacency=_build_adjacency(systems, _read_json(data_dir / "connections.json")),
        units=units,
        leaders=leaders,
        missions=missions,
        objectives=objectives,
        tactic_cards=tactic_cards,
        production=starting_setup.get("production", {}),
        starting_setup=starting_setup,
    )
