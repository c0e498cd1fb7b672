"""
FastAPI backend for Galactic Uprising.
Provides REST API endpoints for game state management and actions.
Games live in memory only; there is no persistence or authentication.
"""

import uuid
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from uprising.config import DEFAULT_SETUP_ID
from uprising.engine import FACTIONS, PHASE_ASSIGNMENT
from uprising.engine.actions import (
    Action,
    assign_leader,
    pass_assignment,
    resolve_mission,
    move_units,
    pass_command,
    initiate_combat,
    play_tactic_card,
    execute_combat_round,
    retreat,
)
from uprising.engine.definitions import GameDefinitions, load_static_definitions, list_setups
from uprising.engine.errors import RuleViolation, UnknownDefinitionError
from uprising.engine.game import GameEngine

app = FastAPI(
    title="Galactic Uprising API",
    description="Backend API for Galactic Uprising - a two-faction turn-based strategy game",
    version="1.0.0",
)

# CORS configuration for frontend
CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174", "http://localhost:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[500] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[500] {method} {path} (exception)", flush=True)
        raise


# In-memory games; key = game_id
games: dict[str, GameEngine] = {}

# Loaded setups; key = setup_id
setup_definitions: dict[str, GameDefinitions] = {}


# ===== Pydantic Models =====

class NewGameRequest(BaseModel):
    game_id: str | None = None
    seed: int | None = None
    """Setup id from GET /setups. Omitted = default from uprising.config.DEFAULT_SETUP_ID."""
    setup_id: str | None = None


class FactionRequest(BaseModel):
    """Body for commands that only need the acting faction. Omitted = active player."""
    faction: str | None = None


class AssignRequest(FactionRequest):
    leader_id: str
    mission_id: str
    target_system: str | None = None


class ResolveMissionRequest(FactionRequest):
    assignment_index: int = 0


class MoveRequest(FactionRequest):
    from_system: str
    to_system: str
    unit_instance_ids: list[str]
    leader_id: str | None = None


class InitiateCombatRequest(FactionRequest):
    system_id: str


class PlayCardRequest(FactionRequest):
    card_id: str


# ===== Helper Functions =====

def get_definitions_for(setup_id: str | None) -> GameDefinitions:
    setup_id = setup_id or DEFAULT_SETUP_ID
    if setup_id not in setup_definitions:
        try:
            setup_definitions[setup_id] = load_static_definitions(setup_id=setup_id)
        except FileNotFoundError:
            raise HTTPException(status_code=404, detail=f"Setup {setup_id} not found")
    return setup_definitions[setup_id]


def get_engine(game_id: str) -> GameEngine:
    engine = games.get(game_id)
    if engine is None:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return engine


def state_for_response(engine: GameEngine) -> dict[str, Any]:
    """Full state plus the summary used by the UI header."""
    return {
        "summary": engine.summary(),
        "state": engine.state.to_dict(),
    }


def _faction(engine: GameEngine, faction: str | None) -> str:
    return faction or engine.state.active_player


def _run(engine: GameEngine, action: Action) -> dict[str, Any]:
    """Apply an action; rejections become 400 with the stable reason code."""
    result = engine.apply(action)
    if not result.ok:
        raise HTTPException(
            status_code=400,
            detail={"reason": result.reason, "message": result.message},
        )
    return {
        **state_for_response(engine),
        "events": [e.to_dict() for e in result.events],
    }


def _query(fn, *args):
    """Run a query, mapping unknown systems to 404."""
    try:
        return fn(*args)
    except (RuleViolation, UnknownDefinitionError) as e:
        raise HTTPException(status_code=404, detail=str(e))


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Galactic Uprising API", "version": "1.0.0"}


@app.get("/setups")
def get_setups():
    """List available game setups (id, display_name). Use setup_id in POST /games."""
    return {"setups": list_setups()}


@app.get("/definitions")
def get_definitions(setup_id: str | None = None):
    """Static content of one setup (default setup when omitted)."""
    definitions = get_definitions_for(setup_id)
    return {
        "setup_id": definitions.setup_id,
        "display_name": definitions.display_name,
        "rules": asdict(definitions.rules),
        "regions": definitions.regions,
        "systems": {k: asdict(v) for k, v in definitions.systems.items()},
        "adjacency": definitions.adjacency,
        "units": {k: asdict(v) for k, v in definitions.units.items()},
        "leaders": {k: asdict(v) for k, v in definitions.leaders.items()},
        "missions": {k: asdict(v) for k, v in definitions.missions.items()},
        "objectives": {k: asdict(v) for k, v in definitions.objectives.items()},
        "tactic_cards": {k: asdict(v) for k, v in definitions.tactic_cards.items()},
    }


@app.post("/games")
def create_game(request: NewGameRequest):
    """Create a new in-memory game. Pass a seed for a reproducible game."""
    game_id = request.game_id or uuid.uuid4().hex[:8]
    if game_id in games:
        raise HTTPException(status_code=400, detail=f"Game {game_id} already exists")
    definitions = get_definitions_for(request.setup_id)
    engine = GameEngine(definitions=definitions, seed=request.seed)
    games[game_id] = engine
    return {"game_id": game_id, **state_for_response(engine)}


@app.get("/games/{game_id}")
def get_game_state(game_id: str):
    return {"game_id": game_id, **state_for_response(get_engine(game_id))}


@app.get("/games/{game_id}/log")
def get_game_log(game_id: str, limit: int | None = None):
    """Narrative log, oldest first. limit keeps only the most recent entries."""
    entries = [e.to_dict() for e in get_engine(game_id).state.log]
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []
    return {"log": entries}


@app.get("/games/{game_id}/available-actions")
def get_available_actions(game_id: str):
    engine = get_engine(game_id)
    state = engine.state
    return {
        "phase": state.phase,
        "active_player": state.active_player,
        "action_types": engine.available_actions(),
        "eligible_leaders": engine.get_eligible_leaders() if state.phase == PHASE_ASSIGNMENT else [],
        "pending_assignments": [a.to_dict() for a in state.assignments.get(state.active_player, [])],
        "tactic_cards": {
            faction: engine.get_available_tactic_cards(faction)
            for faction in FACTIONS
        } if state.active_combat else {},
    }


# ----- Queries -----

@app.get("/games/{game_id}/systems/{system_id}/adjacent")
def get_adjacent(game_id: str, system_id: str):
    engine = get_engine(game_id)
    return {"system_id": system_id, "adjacent": _query(engine.get_adjacent_systems, system_id)}


@app.get("/games/{game_id}/systems/{system_id}/units")
def get_units(game_id: str, system_id: str, faction: str):
    engine = get_engine(game_id)
    units = _query(engine.get_system_units, system_id, faction)
    return {
        "system_id": system_id,
        "faction": faction,
        "units": {domain: [u.to_dict() for u in roster] for domain, roster in units.items()},
        "opposing_forces": engine.has_opposing_forces(system_id),
    }


@app.get("/games/{game_id}/systems/{system_id}/leaders")
def get_leaders(game_id: str, system_id: str, faction: str):
    engine = get_engine(game_id)
    leaders = _query(engine.get_leaders_in_system, system_id, faction)
    return {"system_id": system_id, "faction": faction, "leaders": [l.to_dict() for l in leaders]}


@app.get("/games/{game_id}/combat/cards")
def get_combat_cards(game_id: str, faction: str):
    engine = get_engine(game_id)
    return {"faction": faction, "cards": engine.get_available_tactic_cards(faction)}


# ----- Commands -----

@app.post("/games/{game_id}/assign")
def do_assign(game_id: str, request: AssignRequest):
    engine = get_engine(game_id)
    action = assign_leader(
        _faction(engine, request.faction),
        request.leader_id,
        request.mission_id,
        request.target_system,
    )
    return _run(engine, action)


@app.post("/games/{game_id}/pass-assignment")
def do_pass_assignment(game_id: str, request: FactionRequest | None = None):
    engine = get_engine(game_id)
    faction = request.faction if request else None
    return _run(engine, pass_assignment(_faction(engine, faction)))


@app.post("/games/{game_id}/resolve-mission")
def do_resolve_mission(game_id: str, request: ResolveMissionRequest | None = None):
    engine = get_engine(game_id)
    request = request or ResolveMissionRequest()
    return _run(engine, resolve_mission(_faction(engine, request.faction), request.assignment_index))


@app.post("/games/{game_id}/move")
def do_move(game_id: str, request: MoveRequest):
    engine = get_engine(game_id)
    action = move_units(
        _faction(engine, request.faction),
        request.from_system,
        request.to_system,
        request.unit_instance_ids,
        request.leader_id,
    )
    return _run(engine, action)


@app.post("/games/{game_id}/pass-command")
def do_pass_command(game_id: str, request: FactionRequest | None = None):
    engine = get_engine(game_id)
    faction = request.faction if request else None
    return _run(engine, pass_command(_faction(engine, faction)))


@app.post("/games/{game_id}/combat/initiate")
def do_initiate_combat(game_id: str, request: InitiateCombatRequest):
    engine = get_engine(game_id)
    return _run(engine, initiate_combat(_faction(engine, request.faction), request.system_id))


@app.post("/games/{game_id}/combat/card")
def do_play_card(game_id: str, request: PlayCardRequest):
    engine = get_engine(game_id)
    return _run(engine, play_tactic_card(_faction(engine, request.faction), request.card_id))


@app.post("/games/{game_id}/combat/round")
def do_combat_round(game_id: str, request: FactionRequest | None = None):
    engine = get_engine(game_id)
    faction = request.faction if request else None
    return _run(engine, execute_combat_round(_faction(engine, faction)))


@app.post("/games/{game_id}/combat/retreat")
def do_retreat(game_id: str, request: FactionRequest | None = None):
    engine = get_engine(game_id)
    faction = request.faction if request else None
    return _run(engine, retreat(_faction(engine, faction)))
