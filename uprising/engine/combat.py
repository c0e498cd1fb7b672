"""
Combat resolution: space then ground, one round at a time.

Dice: red (3 hit, 1 crit, 2 miss) and black (2 hit, 1 crit, 3 miss). A crit counts as a hit and
a crit. Crits land first, one per unit, biggest units first; the other hits land one at a time
on the unit with the least remaining health.
"""

import logging
import random
from dataclasses import dataclass, field

from uprising.engine import (
    DOMINION,
    LIBERATION,
    FACTIONS,
    SPACE,
    GROUND,
    COMBAT_DOMAINS,
    HIT,
    CRIT,
    MISS,
    DICE_FACES,
    other_faction,
)
from uprising.engine.definitions import GameDefinitions, TacticCardDefinition
from uprising.engine.errors import RuleViolation, Rejection
from uprising.engine.movement import combatants
from uprising.engine.state import GameState, ActiveCombat, CombatRoundResult, Unit

logger = logging.getLogger(__name__)


@dataclass
class DieRoll:
    color: str  # "red" or "black"
    face: str  # "hit", "crit" or "miss"
    rerolled: bool = False

    def to_dict(self) -> dict:
        return {"color": self.color, "face": self.face, "rerolled": self.rerolled}


@dataclass
class HitTally:
    hits: int = 0  # crits included
    crits: int = 0


@dataclass
class RoundOutcome:
    """What one call to execute_combat_round did."""
    result: CombatRoundResult
    destroyed: list[Unit] = field(default_factory=list)
    domain_complete: bool = False
    domain_winner: str | None = None
    resolved_domain: str | None = None
    next_domain: str | None = None
    combat_over: bool = False


# ===== Setup =====

def start_combat(
    state: GameState,
    definitions: GameDefinitions,
    system_id: str,
    attacker: str | None = None,
) -> ActiveCombat:
    """Snapshot both sides' combatants and open the combat. Space is fought first."""
    sides = {
        faction: {domain: [] for domain in COMBAT_DOMAINS} for faction in FACTIONS
    }
    for faction in FACTIONS:
        for domain in COMBAT_DOMAINS:
            sides[faction][domain] = [
                Unit(u.instance_id, u.unit_id, u.faction, u.max_health, u.damage)
                for u in combatants(state, definitions, system_id, faction, domain)
            ]
    has_space = bool(sides[DOMINION][SPACE]) and bool(sides[LIBERATION][SPACE])
    has_ground = bool(sides[DOMINION][GROUND]) and bool(sides[LIBERATION][GROUND])
    if not has_space and not has_ground:
        raise RuleViolation(Rejection.NO_OPPOSING_FORCES, f"No opposing forces in {system_id}")

    combat = ActiveCombat(
        system_id=system_id,
        domain=SPACE if has_space else GROUND,
        has_space_battle=has_space,
        has_ground_battle=has_ground,
        attacker=attacker,
        space_done=not has_space,
        ground_done=not has_ground,
        sides=sides,
        initial_counts={
            faction: {domain: len(units) for domain, units in by_domain.items()}
            for faction, by_domain in sides.items()
        },
    )
    name = definitions.system(system_id).display_name
    combat.combat_log.append(f"Combat at {name}!")
    combat.combat_log.append(f"{combat.domain.capitalize()} battle begins.")
    state.active_combat = combat
    state.add_log(f"Combat erupts at {name}.")
    logger.debug("combat started at %s (space=%s ground=%s)", system_id, has_space, has_ground)
    return combat


# ===== Dice =====

def leader_bonus(state: GameState, faction: str, system_id: str) -> int:
    """Half (rounded down) of the best combat skill among the faction's free leaders present."""
    skills = [
        l.skill("combat") for l in state.faction_leaders(faction)
        if l.location == system_id and not l.captured
    ]
    return max(skills) // 2 if skills else 0


def count_dice(
    state: GameState,
    definitions: GameDefinitions,
    combat: ActiveCombat,
    faction: str,
) -> tuple[int, int]:
    """(red, black) dice for a faction this round: units, leader bonus, then card bonus."""
    red = black = 0
    for unit in combat.units(faction):
        unit_def = definitions.unit(unit.unit_id)
        red += unit_def.red_dice
        black += unit_def.black_dice
    bonus = leader_bonus(state, faction, combat.system_id)
    if combat.domain == SPACE:
        red += bonus
    else:
        black += bonus
    card = played_card(definitions, combat, faction)
    if card:
        red += card.bonus.get("red", 0)
        black += card.bonus.get("black", 0)
    return red, black


def roll_die(rng: random.Random, color: str) -> str:
    faces = DICE_FACES[color]
    return faces[rng.randrange(len(faces))]


def roll_dice(rng: random.Random, red: int, black: int, reroll: bool = False) -> list[DieRoll]:
    """Red dice first, then black. With reroll, every miss is rolled once more."""
    rolls = [DieRoll("red", roll_die(rng, "red")) for _ in range(red)]
    rolls += [DieRoll("black", roll_die(rng, "black")) for _ in range(black)]
    if reroll:
        for die in rolls:
            if die.face == MISS:
                die.face = roll_die(rng, die.color)
                die.rerolled = True
    return rolls


def tally_hits(rolls: list[DieRoll]) -> HitTally:
    tally = HitTally()
    for die in rolls:
        if die.face == HIT:
            tally.hits += 1
        elif die.face == CRIT:
            tally.hits += 1
            tally.crits += 1
    return tally


def mitigate_hits(
    hits: int,
    shooter_card: TacticCardDefinition | None,
    target_card: TacticCardDefinition | None,
) -> int:
    """Hits that reach the target: target's block (unless pierced), then the shooter's doubling."""
    block = target_card.block if target_card else 0
    if shooter_card and shooter_card.pierce:
        block = 0
    effective = max(0, hits - block)
    if shooter_card and shooter_card.double_hits:
        effective *= 2
    return effective


def apply_damage(units: list[Unit], hits: int, crits: int) -> list[Unit]:
    """
    Apply hits to units, returning the destroyed ones.

    Crits first: one damage each to distinct units in descending max health. Crits beyond
    the number of units become normal hits. Normal hits: one at a time, each to the surviving
    unit with the least remaining health (re-evaluated after every hit).

    Note: Modifies units list in place (removes dead units).
    """
    destroyed: list[Unit] = []
    crit_targets = sorted(units, key=lambda u: -u.max_health)[:min(crits, hits)]
    remaining = hits - len(crit_targets)

    for target in crit_targets:
        target.damage += 1
        if target.destroyed:
            destroyed.append(target)
            units.remove(target)

    while remaining > 0 and units:
        target = min(units, key=lambda u: u.remaining_health)
        target.damage += 1
        remaining -= 1
        if target.destroyed:
            destroyed.append(target)
            units.remove(target)
    return destroyed


# ===== Cards =====

def played_card(
    definitions: GameDefinitions,
    combat: ActiveCombat,
    faction: str,
) -> TacticCardDefinition | None:
    card_id = combat.cards_played.get(faction)
    return definitions.tactic_card(card_id) if card_id else None


def available_cards(state: GameState, definitions: GameDefinitions, faction: str) -> list[TacticCardDefinition]:
    """Cards of the faction's pool usable in the current combat domain."""
    combat = state.active_combat
    if combat is None:
        return []
    cards = [definitions.tactic_card(cid) for cid in state.tactic_cards.get(faction, [])]
    return [c for c in cards if c.domain == combat.domain]


def play_card(state: GameState, definitions: GameDefinitions, faction: str, card_id: str) -> TacticCardDefinition:
    """One card per side per round; it must match the domain being fought."""
    combat = state.active_combat
    if combat is None:
        raise RuleViolation(Rejection.NO_ACTIVE_COMBAT, "No active combat")
    if combat.cards_played.get(faction) is not None:
        raise RuleViolation(
            Rejection.CARD_ALREADY_PLAYED,
            f"{faction.capitalize()} already played a card this round",
        )
    if card_id not in [c.id for c in available_cards(state, definitions, faction)]:
        raise RuleViolation(
            Rejection.CARD_NOT_AVAILABLE,
            f"Card {card_id} is not available to {faction} in {combat.domain} combat",
        )
    card = definitions.tactic_card(card_id)
    combat.cards_played[faction] = card_id
    combat.combat_log.append(f"{faction.capitalize()} plays {card.display_name}.")
    return card


# ===== Rounds =====

def _record_losses(state: GameState, definitions: GameDefinitions, destroyed: list[Unit]) -> None:
    rules = definitions.rules
    state.stats.units_destroyed_in_battle += len(destroyed)
    for unit in destroyed:
        if unit.faction == DOMINION and unit.unit_id in rules.capital_units:
            state.stats.capital_ships_destroyed += 1
        if unit.unit_id == rules.titan_unit:
            state.titan_destroyed = True


def _close_domain(state: GameState, combat: ActiveCombat, outcome: RoundOutcome) -> None:
    """Mark the current domain fought out, record the winner, and move to ground if pending."""
    domain = combat.domain
    dom_left = len(combat.units(DOMINION))
    lib_left = len(combat.units(LIBERATION))
    winner = None
    if dom_left and not lib_left:
        winner = DOMINION
    elif lib_left and not dom_left:
        winner = LIBERATION

    combat.domain_winners[domain] = winner
    outcome.domain_complete = True
    outcome.domain_winner = winner
    outcome.resolved_domain = domain
    label = winner.capitalize() if winner else "nobody"
    combat.combat_log.append(f"{domain.capitalize()} battle won by {label}!")

    if winner == LIBERATION:
        if domain == SPACE and combat.initial_counts[DOMINION][SPACE] >= 3:
            state.stats.space_wins_vs_3plus += 1
        if domain == GROUND and combat.attacker != LIBERATION:
            state.stats.ground_defense_wins += 1

    if domain == SPACE:
        combat.space_done = True
        if not combat.ground_done:
            combat.domain = GROUND
            combat.round_number = 1
            combat.cards_played = {DOMINION: None, LIBERATION: None}
            combat.combat_log.append("Ground battle begins.")
            outcome.next_domain = GROUND
    else:
        combat.ground_done = True


def execute_combat_round(state: GameState, definitions: GameDefinitions, rng: random.Random) -> RoundOutcome:
    """
    Roll and resolve one round in the current domain.
    Dominion rolls first, then Liberation. Each side's hits land on the other side.
    Finalizes the combat when every contested domain has been fought out.
    """
    combat = state.active_combat
    if combat is None:
        raise RuleViolation(Rejection.NO_ACTIVE_COMBAT, "No active combat")

    domain = combat.domain
    cards = {f: played_card(definitions, combat, f) for f in FACTIONS}
    rolls: dict[str, list[DieRoll]] = {}
    tallies: dict[str, HitTally] = {}
    for faction in FACTIONS:
        red, black = count_dice(state, definitions, combat, faction)
        card = cards[faction]
        rolls[faction] = roll_dice(rng, red, black, reroll=bool(card and card.reroll))
        tallies[faction] = tally_hits(rolls[faction])

    effective = {
        f: mitigate_hits(tallies[f].hits, cards[f], cards[other_faction(f)]) for f in FACTIONS
    }
    casualties: dict[str, list[Unit]] = {}
    for faction in FACTIONS:
        target = other_faction(faction)
        casualties[target] = apply_damage(combat.units(target), effective[faction], tallies[faction].crits)

    destroyed = casualties[DOMINION] + casualties[LIBERATION]
    combat.destroyed_unit_ids.extend(u.instance_id for u in destroyed)
    _record_losses(state, definitions, destroyed)

    result = CombatRoundResult(
        round_number=combat.round_number,
        domain=domain,
        rolls={f: [d.to_dict() for d in rolls[f]] for f in FACTIONS},
        hits={f: tallies[f].hits for f in FACTIONS},
        crits={f: tallies[f].crits for f in FACTIONS},
        effective_hits=effective,
        casualties={f: [u.instance_id for u in casualties[f]] for f in FACTIONS},
        remaining={f: len(combat.units(f)) for f in FACTIONS},
    )
    combat.round_results.append(result)
    combat.combat_log.append(
        f"Round {combat.round_number}: Dominion deals {effective[DOMINION]} hits, "
        f"Liberation deals {effective[LIBERATION]} hits."
    )
    logger.debug("round %s %s at %s: %s", combat.round_number, domain, combat.system_id, effective)

    outcome = RoundOutcome(result=result, destroyed=destroyed)
    if not combat.units(DOMINION) or not combat.units(LIBERATION):
        _close_domain(state, combat, outcome)
        if combat.space_done and combat.ground_done:
            finalize_combat(state)
            outcome.combat_over = True
        return outcome

    combat.round_number += 1
    combat.cards_played = {DOMINION: None, LIBERATION: None}
    return outcome


# ===== End of combat =====

def finalize_combat(state: GameState) -> ActiveCombat:
    """
    Fold the combat back into the system: drop destroyed units, clear damage on everything
    left there, and free the combat slot.
    """
    combat = state.active_combat
    if combat is None:
        raise RuleViolation(Rejection.NO_ACTIVE_COMBAT, "No active combat")
    system = state.systems[combat.system_id]
    destroyed = set(combat.destroyed_unit_ids)
    for domain in COMBAT_DOMAINS:
        roster = system.roster(domain)
        roster[:] = [u for u in roster if u.instance_id not in destroyed]
        for unit in roster:
            unit.damage = 0
    combat.combat_log.append("Combat resolved.")
    state.last_combat = combat
    state.active_combat = None
    return combat


def retreat_from_combat(state: GameState, faction: str) -> ActiveCombat:
    """End the combat early. No domain winner is declared; units stay in the system."""
    combat = state.active_combat
    if combat is None:
        raise RuleViolation(Rejection.NO_ACTIVE_COMBAT, "No active combat")
    combat.retreated = faction
    combat.combat_log.append(f"{faction.capitalize()} retreats!")
    return finalize_combat(state)
