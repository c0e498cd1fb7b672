"""
Refresh-phase production: one unit per loyal production system (capped per faction),
then the timed production queue.
"""

import logging
import random

from uprising.engine import FACTIONS
from uprising.engine.definitions import GameDefinitions
from uprising.engine.state import GameState, ProductionItem, Unit
from uprising.engine.utils import spawn_units

logger = logging.getLogger(__name__)


def _first_buildable(definitions: GameDefinitions, faction: str, system_id: str) -> str | None:
    """Basic unit of the first resource type at this system that the faction can build."""
    production = definitions.production.get(faction, {})
    for resource in definitions.system(system_id).resources:
        options = production.get(resource)
        if options:
            return options[0]
    return None


def run_auto_production(
    state: GameState,
    definitions: GameDefinitions,
    rng: random.Random,
) -> dict[str, list[Unit]]:
    """
    Build at most one unit at each loyal system with a production facility.
    Build order across systems is shuffled; each faction stops at its build cap.

    Returns: {faction: [units built]}
    """
    built: dict[str, list[Unit]] = {}
    for faction in FACTIONS:
        cap = definitions.rules.max_builds.get(faction, 0)
        eligible = [
            sid for sid, system in state.systems.items()
            if system.loyalty == faction and definitions.system(sid).has_production
        ]
        rng.shuffle(eligible)
        units: list[Unit] = []
        for system_id in eligible:
            if len(units) >= cap:
                break
            unit_id = _first_buildable(definitions, faction, system_id)
            if unit_id is None:
                continue
            units.extend(spawn_units(state, definitions, system_id, unit_id))
        if units:
            state.add_log(f"{faction.capitalize()} produces {len(units)} new units.")
            logger.debug("%s built %s", faction, [u.instance_id for u in units])
        built[faction] = units
    return built


def advance_production_queue(state: GameState) -> None:
    for items in state.production_queue.values():
        for item in items:
            item.turns_left -= 1


def deploy_completed_production(
    state: GameState,
    definitions: GameDefinitions,
) -> list[tuple[str, ProductionItem, Unit]]:
    """Place every queued item that has reached zero turns. Returns (faction, item, unit) triples."""
    deployed = []
    for faction, items in state.production_queue.items():
        for item in [i for i in items if i.turns_left <= 0]:
            unit = spawn_units(state, definitions, item.system_id, item.unit_id)[0]
            if definitions.unit(item.unit_id).unique:
                state.titan_built = True
                state.add_log(f"The {definitions.unit(item.unit_id).display_name} has been completed!")
            deployed.append((faction, item, unit))
        state.production_queue[faction] = [i for i in items if i.turns_left > 0]
    return deployed
