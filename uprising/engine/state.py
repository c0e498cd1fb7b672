"""
Game state representation.
The reducer never mutates the state it is given; it works on copy() and returns the copy.
to_dict() gives a JSON-friendly view for diagnostics and the API (not a savegame format).
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from uprising.engine import DOMINION, LIBERATION, SPACE, GROUND, COMBAT_DOMAINS, FACTIONS


@dataclass
class Unit:
    """Individual unit instance. Damage is cleared after every battle."""
    instance_id: str  # e.g. "dominion_dom_cruiser_003"
    unit_id: str  # unit type id
    faction: str
    max_health: int
    damage: int = 0

    @property
    def remaining_health(self) -> int:
        return self.max_health - self.damage

    @property
    def destroyed(self) -> bool:
        return self.damage >= self.max_health

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "unit_id": self.unit_id,
            "faction": self.faction,
            "max_health": self.max_health,
            "damage": self.damage,
        }


@dataclass
class SystemState:
    """Mutable state of one star system."""
    system_id: str
    loyalty: str
    probed: bool = False
    subjugated: bool = False
    space_units: list[Unit] = field(default_factory=list)
    ground_units: list[Unit] = field(default_factory=list)  # includes structures

    def roster(self, domain: str) -> list[Unit]:
        return self.space_units if domain == SPACE else self.ground_units

    def faction_units(self, faction: str, domain: str | None = None) -> list[Unit]:
        domains = (domain,) if domain else COMBAT_DOMAINS
        return [u for d in domains for u in self.roster(d) if u.faction == faction]

    def to_dict(self) -> dict[str, Any]:
        return {
            "system_id": self.system_id,
            "loyalty": self.loyalty,
            "probed": self.probed,
            "subjugated": self.subjugated,
            "space_units": [u.to_dict() for u in self.space_units],
            "ground_units": [u.to_dict() for u in self.ground_units],
        }


@dataclass
class Leader:
    leader_id: str
    name: str
    faction: str
    skills: dict[str, int]
    location: str | None  # None once captured
    captured: bool = False
    on_mission: bool = False
    exhausted: bool = False

    def skill(self, name: str) -> int:
        return self.skills.get(name, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "leader_id": self.leader_id,
            "name": self.name,
            "faction": self.faction,
            "skills": dict(self.skills),
            "location": self.location,
            "captured": self.captured,
            "on_mission": self.on_mission,
            "exhausted": self.exhausted,
        }


@dataclass
class Assignment:
    """A leader sent on a mission, waiting for the command phase."""
    leader_id: str
    mission_id: str
    target_system: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "leader_id": self.leader_id,
            "mission_id": self.mission_id,
            "target_system": self.target_system,
        }


@dataclass
class ProductionItem:
    unit_id: str
    system_id: str
    turns_left: int

    def to_dict(self) -> dict[str, Any]:
        return {"unit_id": self.unit_id, "system_id": self.system_id, "turns_left": self.turns_left}


@dataclass
class BattleStats:
    """Counters read by objective checks."""
    ground_defense_wins: int = 0
    capital_ships_destroyed: int = 0
    space_wins_vs_3plus: int = 0
    dominion_leaders_captured: int = 0
    units_destroyed_in_battle: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "ground_defense_wins": self.ground_defense_wins,
            "capital_ships_destroyed": self.capital_ships_destroyed,
            "space_wins_vs_3plus": self.space_wins_vs_3plus,
            "dominion_leaders_captured": self.dominion_leaders_captured,
            "units_destroyed_in_battle": self.units_destroyed_in_battle,
        }


@dataclass
class CombatRoundResult:
    """Result of a single combat round (for combat log)."""
    round_number: int
    domain: str
    rolls: dict[str, list[dict[str, Any]]]  # faction -> [{"color", "face", "rerolled"}]
    hits: dict[str, int]  # faction -> hits rolled (crits included)
    crits: dict[str, int]
    effective_hits: dict[str, int]  # faction -> hits dealt after block/pierce/double
    casualties: dict[str, list[str]]  # faction -> instance_ids lost this round
    remaining: dict[str, int]  # faction -> units left in the domain

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_number": self.round_number,
            "domain": self.domain,
            "rolls": self.rolls,
            "hits": self.hits,
            "crits": self.crits,
            "effective_hits": self.effective_hits,
            "casualties": self.casualties,
            "remaining": self.remaining,
        }


def _empty_sides() -> dict[str, dict[str, list[Unit]]]:
    return {f: {SPACE: [], GROUND: []} for f in FACTIONS}


@dataclass
class ActiveCombat:
    """
    The single battle in progress. Holds copies of the combatants; the system rosters
    are only updated when the combat is finalized.
    """
    system_id: str
    domain: str  # "space" or "ground"
    has_space_battle: bool
    has_ground_battle: bool
    attacker: str | None = None  # faction whose move started the battle
    round_number: int = 1
    space_done: bool = False
    ground_done: bool = False
    sides: dict[str, dict[str, list[Unit]]] = field(default_factory=_empty_sides)
    initial_counts: dict[str, dict[str, int]] = field(default_factory=dict)
    cards_played: dict[str, str | None] = field(
        default_factory=lambda: {DOMINION: None, LIBERATION: None}
    )
    retreated: str | None = None
    domain_winners: dict[str, str | None] = field(default_factory=dict)
    destroyed_unit_ids: list[str] = field(default_factory=list)
    round_results: list[CombatRoundResult] = field(default_factory=list)
    combat_log: list[str] = field(default_factory=list)

    def units(self, faction: str, domain: str | None = None) -> list[Unit]:
        return self.sides[faction][domain or self.domain]

    def to_dict(self) -> dict[str, Any]:
        return {
            "system_id": self.system_id,
            "domain": self.domain,
            "has_space_battle": self.has_space_battle,
            "has_ground_battle": self.has_ground_battle,
            "attacker": self.attacker,
            "round_number": self.round_number,
            "space_done": self.space_done,
            "ground_done": self.ground_done,
            "sides": {
                f: {d: [u.to_dict() for u in units] for d, units in by_domain.items()}
                for f, by_domain in self.sides.items()
            },
            "initial_counts": self.initial_counts,
            "cards_played": dict(self.cards_played),
            "retreated": self.retreated,
            "domain_winners": dict(self.domain_winners),
            "destroyed_unit_ids": list(self.destroyed_unit_ids),
            "round_results": [r.to_dict() for r in self.round_results],
            "combat_log": list(self.combat_log),
        }


@dataclass
class LogEntry:
    turn: int
    phase: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"turn": self.turn, "phase": self.phase, "message": self.message}


@dataclass
class GameState:
    """Complete game state."""
    turn: int
    phase: str  # "assignment", "command", "refresh" or "game_over"
    active_player: str
    systems: dict[str, SystemState]  # system_id -> SystemState
    leaders: dict[str, Leader]  # leader_id -> Leader, in creation order
    liberation_base: str  # true base location, regardless of reveal state
    reputation_marker: int
    time_marker: int = 0
    base_revealed: bool = False
    # faction -> mission ids; the deck is drawn from the end
    mission_decks: dict[str, list[str]] = field(default_factory=dict)
    mission_hands: dict[str, list[str]] = field(default_factory=dict)
    assignments: dict[str, list[Assignment]] = field(
        default_factory=lambda: {DOMINION: [], LIBERATION: []}
    )
    assigned_leader_ids: list[str] = field(default_factory=list)
    assignment_count: dict[str, int] = field(default_factory=lambda: {DOMINION: 0, LIBERATION: 0})
    passes: dict[str, bool] = field(default_factory=lambda: {DOMINION: False, LIBERATION: False})
    # System ids; the top of the deck is the end of the list
    probe_deck: list[str] = field(default_factory=list)
    probe_discards: list[str] = field(default_factory=list)
    objective_deck: list[str] = field(default_factory=list)
    current_objectives: list[str] = field(default_factory=list)
    completed_objectives: list[str] = field(default_factory=list)
    production_queue: dict[str, list[ProductionItem]] = field(
        default_factory=lambda: {DOMINION: [], LIBERATION: []}
    )
    tactic_cards: dict[str, list[str]] = field(default_factory=dict)
    captured_leaders: list[str] = field(default_factory=list)
    titan_built: bool = False
    titan_destroyed: bool = False
    stats: BattleStats = field(default_factory=BattleStats)
    active_combat: ActiveCombat | None = None
    last_combat: ActiveCombat | None = None
    winner: str | None = None
    log: list[LogEntry] = field(default_factory=list)
    log_limit: int = 200
    unit_id_counters: dict[str, int] = field(default_factory=dict)
    recruit_counter: int = 0

    @property
    def game_over(self) -> bool:
        return self.winner is not None

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    def generate_unit_instance_id(self, faction_id: str, unit_id: str) -> str:
        """Generate a unique instance ID for a unit."""
        if faction_id not in self.unit_id_counters:
            self.unit_id_counters[faction_id] = 0
        self.unit_id_counters[faction_id] += 1
        return f"{faction_id}_{unit_id}_{self.unit_id_counters[faction_id]:03d}"

    def add_log(self, message: str) -> None:
        self.log.append(LogEntry(turn=self.turn, phase=self.phase, message=message))
        if len(self.log) > self.log_limit:
            del self.log[: len(self.log) - self.log_limit]

    def faction_leaders(self, faction: str) -> list[Leader]:
        return [l for l in self.leaders.values() if l.faction == faction]

    def unit_count(self, faction: str) -> int:
        return sum(len(s.faction_units(faction)) for s in self.systems.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert GameState to a dictionary for JSON output."""
        return {
            "turn": self.turn,
            "phase": self.phase,
            "active_player": self.active_player,
            "systems": {sid: s.to_dict() for sid, s in self.systems.items()},
            "leaders": {lid: l.to_dict() for lid, l in self.leaders.items()},
            "liberation_base": self.liberation_base,
            "base_revealed": self.base_revealed,
            "reputation_marker": self.reputation_marker,
            "time_marker": self.time_marker,
            "mission_decks": {f: list(v) for f, v in self.mission_decks.items()},
            "mission_hands": {f: list(v) for f, v in self.mission_hands.items()},
            "assignments": {f: [a.to_dict() for a in v] for f, v in self.assignments.items()},
            "assigned_leader_ids": list(self.assigned_leader_ids),
            "assignment_count": dict(self.assignment_count),
            "passes": dict(self.passes),
            "probe_deck_size": len(self.probe_deck),
            "probe_discards": list(self.probe_discards),
            "objective_deck_size": len(self.objective_deck),
            "current_objectives": list(self.current_objectives),
            "completed_objectives": list(self.completed_objectives),
            "production_queue": {
                f: [item.to_dict() for item in v] for f, v in self.production_queue.items()
            },
            "tactic_cards": {f: list(v) for f, v in self.tactic_cards.items()},
            "captured_leaders": list(self.captured_leaders),
            "titan_built": self.titan_built,
            "titan_destroyed": self.titan_destroyed,
            "stats": self.stats.to_dict(),
            "active_combat": self.active_combat.to_dict() if self.active_combat else None,
            "last_combat": self.last_combat.to_dict() if self.last_combat else None,
            "winner": self.winner,
            "log": [entry.to_dict() for entry in self.log],
        }
