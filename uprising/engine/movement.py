"""
Movement logic: adjacency, the commanding-leader rule, unit transfer, opposing-forces check.
"""

from uprising.engine import DOMINION, LIBERATION, COMBAT_DOMAINS
from uprising.engine.definitions import GameDefinitions
from uprising.engine.state import GameState, Unit


def get_adjacent_systems(definitions: GameDefinitions, system_id: str) -> list[str]:
    """Neighbors of a system, in connection-list order."""
    return definitions.neighbors(system_id)


def is_adjacent(definitions: GameDefinitions, from_system: str, to_system: str) -> bool:
    return to_system in definitions.adjacency.get(from_system, [])


def has_commanding_leader(state: GameState, faction: str, from_system: str, to_system: str) -> bool:
    """A free (not captured, not on a mission) leader must be at the origin or the destination."""
    return any(
        leader.location in (from_system, to_system) and not leader.captured and not leader.on_mission
        for leader in state.faction_leaders(faction)
    )


def combatants(
    state: GameState,
    definitions: GameDefinitions,
    system_id: str,
    faction: str,
    domain: str,
) -> list[Unit]:
    """Units of a faction that fight in the given domain. Structures never fight."""
    return [
        u for u in state.systems[system_id].faction_units(faction, domain)
        if not definitions.unit(u.unit_id).is_structure
    ]


def has_opposing_forces(state: GameState, definitions: GameDefinitions, system_id: str) -> bool:
    """True if both factions have combat-eligible units sharing a domain in the system."""
    return any(
        combatants(state, definitions, system_id, DOMINION, domain)
        and combatants(state, definitions, system_id, LIBERATION, domain)
        for domain in COMBAT_DOMAINS
    )


def transfer_units(state: GameState, from_system: str, to_system: str, unit_ids: list[str]) -> list[str]:
    """Move units by instance id, keeping each in the same domain roster. Returns ids moved."""
    origin = state.systems[from_system]
    destination = state.systems[to_system]
    wanted = set(unit_ids)
    moved = []
    for domain in COMBAT_DOMAINS:
        staying = []
        for unit in origin.roster(domain):
            if unit.instance_id in wanted:
                destination.roster(domain).append(unit)
                moved.append(unit.instance_id)
            else:
                staying.append(unit)
        origin.roster(domain)[:] = staying
    return moved


def relocate_faction_units(
    state: GameState,
    definitions: GameDefinitions,
    from_system: str,
    to_system: str,
    faction: str,
    include_structures: bool = False,
) -> int:
    """Move every unit of a faction from one system to another. Returns the number moved."""
    unit_ids = [
        u.instance_id for u in state.systems[from_system].faction_units(faction)
        if include_structures or not definitions.unit(u.unit_id).is_structure
    ]
    return len(transfer_units(state, from_system, to_system, unit_ids))
