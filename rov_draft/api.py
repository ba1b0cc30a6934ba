"""
api.py — HTTP API of ROV Draft Lab.

Public:   /login, /logout, /health, /api/draft/sequence, /api/debug/*
Admin:    /api/admin/*  (requires the admin_session cookie, see auth.py)

Run:
    uvicorn rov_draft.api:app --reload
"""

import logging
import os
from datetime import date

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rov_draft import (
    combos_service,
    draft_service,
    heroes_service,
    matchups_service,
    meta_service,
    team_pool_service,
    tournaments_service,
    win_conditions_service,
)
from rov_draft.auth import SESSION_COOKIE, check_password, cookie_is_secure, require_admin
from rov_draft.check_db_stats import get_hero_stats_per_version, get_table_counts
from rov_draft.database import create_all_tables, get_db
from rov_draft.draft_sequence import (
    BLUE_BAN_SLOTS,
    BLUE_PICK_SLOTS,
    DRAFT_SEQUENCE,
    PHASE_TIMERS,
    RED_BAN_SLOTS,
    RED_PICK_SLOTS,
    replay_draft,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]


# --- DB init (idempotent; Alembic is the authoritative source for PostgreSQL) ---
create_all_tables()


app = FastAPI(title="ROV Draft Lab")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    # the admin cookie has to travel with cross-origin requests from the dashboard
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========== Error handling ==========

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(LookupError)
async def lookup_error_handler(request: Request, exc: LookupError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("[api] database error on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Database error, please try again later"})


# ========== Pydantic Models ==========

class LoginRequest(BaseModel):
    password: str


class MessageResponse(BaseModel):
    success: bool
    message: str


class VersionCreate(BaseModel):
    name: str
    start_date: date | None = None


class HeroCreate(BaseModel):
    name: str
    icon_url: str
    version_id: int | None = None
    damage_type: str | None = None
    main_position: list[str] = []
    power_spike: str | None = None


class HeroUpdate(BaseModel):
    version_id: int
    name: str
    icon_url: str
    damage_type: str | None = None
    main_position: list[str] = []
    tier: str | None = None
    power_spike: str | None = None


class HeroImport(BaseModel):
    version_id: int
    rows: list[dict]


class TournamentCreate(BaseModel):
    name: str
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None


class TeamCreate(BaseModel):
    tournament_id: int
    name: str
    short_name: str | None = None
    logo_url: str | None = None


class PlayerCreate(BaseModel):
    name: str
    positions: list[str] = []


class RosterAssign(BaseModel):
    team_id: int
    roster_role: str | None = None


class MatchCreate(BaseModel):
    team_a_name: str
    team_b_name: str
    mode: str = "BO1"
    version_id: int
    tournament_id: int | None = None
    match_date: date | None = None


class ScrimCreate(BaseModel):
    match_date: date | None = None
    version_id: int | None = None
    tournament_id: int | None = None
    mode: str = "FULL"
    team_a_name: str | None = None
    team_b_name: str | None = None
    best_of: str = "BO1"


class GameCreate(BaseModel):
    blue_team_name: str | None = None
    red_team_name: str | None = None


class GameFinish(BaseModel):
    winner: str
    blue_picks: dict[int, int] = {}
    red_picks: dict[int, int] = {}
    blue_bans: list[int] = []
    red_bans: list[int] = []
    assignments: dict[int, str] = {}
    mvp_hero_id: int | None = None
    notes: str | None = None


class DraftReplay(BaseModel):
    hero_ids: list[int] = []


class ScrimSummary(BaseModel):
    games: list[dict]


class MatchupEntry(BaseModel):
    enemy_hero_id: int
    enemy_position: str
    win_rate: float
    note: str | None = None


class MatchupSave(BaseModel):
    version_id: int | None = None
    hero_id: int | None = None
    position: str | None = None
    matchups: list[MatchupEntry] = []


class ComboCreate(BaseModel):
    version_id: int
    hero_a_id: int
    hero_b_id: int
    synergy_score: int
    hero_a_position: str | None = None
    hero_b_position: str | None = None
    description: str | None = None


class ComboUpdate(BaseModel):
    synergy_score: int | None = None
    description: str | None = None
    hero_a_position: str | None = None
    hero_b_position: str | None = None


class Condition(BaseModel):
    id: str | None = None
    heroId: int | str | None = None
    role: str = "ANY"


class WinConditionAnalyze(BaseModel):
    allyConditions: list[Condition] = []
    enemyConditions: list[Condition] = []
    tournamentId: int | None = None


class WinConditionSave(BaseModel):
    name: str
    version: str | None = None
    tournament_id: int | None = None
    ally_conditions: list[Condition] = []
    enemy_conditions: list[Condition] = []


def _conditions(items: list[Condition]) -> list[dict]:
    return [c.model_dump() for c in items]


# ========== Public Endpoints ==========

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/login", response_model=MessageResponse)
async def login(data: LoginRequest, response: Response):
    ok, message = check_password(data.password)
    if not ok:
        status = 500 if message.startswith("System configuration") else 401
        raise HTTPException(status_code=status, detail=message)

    # session cookie: no max_age, expires when the browser closes
    response.set_cookie(
        SESSION_COOKIE,
        "true",
        httponly=True,
        secure=cookie_is_secure(),
        samesite="lax",
    )
    logger.info("[auth] admin logged in")
    return MessageResponse(success=True, message=message)


@app.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return MessageResponse(success=True, message="Logged out")


@app.get("/api/draft/sequence")
async def draft_sequence():
    return {
        "steps": [step._asdict() for step in DRAFT_SEQUENCE],
        "timers": PHASE_TIMERS,
        "slots": {
            "blue_picks": BLUE_PICK_SLOTS,
            "red_picks": RED_PICK_SLOTS,
            "blue_bans": BLUE_BAN_SLOTS,
            "red_bans": RED_BAN_SLOTS,
        },
    }


@app.get("/api/debug/slot5")
def debug_slot5(db: Session = Depends(get_db)):
    return meta_service.get_slot_report(db, 5)


@app.get("/api/debug/slot/{position_index}")
def debug_slot(position_index: int, db: Session = Depends(get_db)):
    if not 1 <= position_index <= len(DRAFT_SEQUENCE):
        raise HTTPException(status_code=422, detail=f"Slot must be between 1 and {len(DRAFT_SEQUENCE)}")
    return meta_service.get_slot_report(db, position_index)


@app.get("/api/debug/stats")
def debug_stats():
    return {"tables": get_table_counts(), "heroStatsPerVersion": get_hero_stats_per_version()}


# ========== Admin Endpoints ==========

admin = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])


# --- Versions ---

@admin.get("/versions")
def list_versions(db: Session = Depends(get_db)):
    return heroes_service.get_versions(db)


@admin.get("/versions/active")
def active_version(db: Session = Depends(get_db)):
    version = heroes_service.get_active_version(db)
    if version is None:
        raise HTTPException(status_code=404, detail="No active version")
    return version


@admin.post("/versions")
def create_version(data: VersionCreate, db: Session = Depends(get_db)):
    return heroes_service.create_version(db, data.name, data.start_date)


@admin.post("/versions/{version_id}/activate", response_model=MessageResponse)
def activate_version(version_id: int, db: Session = Depends(get_db)):
    return heroes_service.activate_version(db, version_id)


# --- Heroes ---

@admin.get("/heroes")
def list_heroes(version_id: int | None = Query(default=None), db: Session = Depends(get_db)):
    if version_id is None:
        return heroes_service.get_all_heroes(db)
    return heroes_service.get_heroes_by_version(db, version_id)


@admin.get("/heroes/{name}")
def hero_detail(name: str, db: Session = Depends(get_db)):
    return heroes_service.get_hero_detail(db, name)


@admin.post("/heroes")
def create_hero(data: HeroCreate, db: Session = Depends(get_db)):
    return heroes_service.create_hero(
        db,
        name=data.name,
        icon_url=data.icon_url,
        version_id=data.version_id,
        damage_type=data.damage_type,
        main_position=data.main_position,
        power_spike=data.power_spike,
    )


@admin.put("/heroes/{hero_id}", response_model=MessageResponse)
def update_hero(hero_id: int, data: HeroUpdate, db: Session = Depends(get_db)):
    return heroes_service.update_hero(
        db,
        hero_id=hero_id,
        version_id=data.version_id,
        name=data.name,
        icon_url=data.icon_url,
        damage_type=data.damage_type,
        main_position=data.main_position,
        tier=data.tier,
        power_spike=data.power_spike,
    )


@admin.post("/heroes/import")
def import_heroes(data: HeroImport, db: Session = Depends(get_db)):
    return heroes_service.bulk_import_heroes(db, data.version_id, data.rows)


# --- Tournaments / teams / players ---

@admin.get("/tournaments")
def list_tournaments(db: Session = Depends(get_db)):
    return tournaments_service.get_tournaments(db)


@admin.post("/tournaments")
def create_tournament(data: TournamentCreate, db: Session = Depends(get_db)):
    return tournaments_service.create_tournament(db, data.name, data.start_date, data.end_date, data.status)


@admin.get("/tournaments/{key}")
def get_tournament(key: str, db: Session = Depends(get_db)):
    return tournaments_service.get_tournament(db, key)


@admin.delete("/tournaments/{tournament_id}", response_model=MessageResponse)
def delete_tournament(tournament_id: int, db: Session = Depends(get_db)):
    return tournaments_service.delete_tournament(db, tournament_id)


@admin.get("/tournaments/{key}/team-pools")
def tournament_team_pools(key: str, db: Session = Depends(get_db)):
    return team_pool_service.get_tournament_team_pools(db, tournaments_service.resolve_tournament_id(db, key))


@admin.get("/tournaments/{key}/meta")
def tournament_meta(key: str, db: Session = Depends(get_db)):
    return meta_service.get_tournament_meta(db, tournaments_service.resolve_tournament_id(db, key))


@admin.get("/teams")
def list_teams(tournament_id: int | None = Query(default=None), db: Session = Depends(get_db)):
    return tournaments_service.get_teams(db, tournament_id)


@admin.post("/teams")
def create_team(data: TeamCreate, db: Session = Depends(get_db)):
    return tournaments_service.create_team(db, data.tournament_id, data.name, data.short_name, data.logo_url)


@admin.get("/teams/{key}")
def get_team(key: str, db: Session = Depends(get_db)):
    return tournaments_service.get_team(db, key)


@admin.delete("/teams/{team_id}", response_model=MessageResponse)
def delete_team(team_id: int, db: Session = Depends(get_db)):
    return tournaments_service.delete_team(db, team_id)


@admin.get("/players")
def list_players(db: Session = Depends(get_db)):
    return tournaments_service.get_players(db)


@admin.post("/players")
def create_player(data: PlayerCreate, db: Session = Depends(get_db)):
    return tournaments_service.create_player(db, data.name, data.positions)


@admin.get("/players/{key}")
def get_player(key: str, db: Session = Depends(get_db)):
    return tournaments_service.get_player(db, key)


@admin.put("/players/{player_id}", response_model=MessageResponse)
def update_player(player_id: int, data: PlayerCreate, db: Session = Depends(get_db)):
    return tournaments_service.update_player(db, player_id, data.name, data.positions)


@admin.delete("/players/{player_id}", response_model=MessageResponse)
def delete_player(player_id: int, db: Session = Depends(get_db)):
    return tournaments_service.delete_player(db, player_id)


@admin.post("/players/{player_id}/roster", response_model=MessageResponse)
def assign_roster(player_id: int, data: RosterAssign, db: Session = Depends(get_db)):
    return tournaments_service.assign_player_to_roster(db, player_id, data.team_id, data.roster_role)


@admin.delete("/players/{player_id}/roster", response_model=MessageResponse)
def remove_roster(player_id: int, db: Session = Depends(get_db)):
    return tournaments_service.remove_player_from_roster(db, player_id)


# --- Matches / games ---

@admin.get("/matches")
def list_matches(
    match_type: str | None = Query(default=None),
    tournament_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return draft_service.get_matches(db, match_type, tournament_id)


@admin.post("/matches")
def create_match(data: MatchCreate, db: Session = Depends(get_db)):
    return draft_service.create_match(
        db,
        team_a_name=data.team_a_name,
        team_b_name=data.team_b_name,
        mode=data.mode,
        version_id=data.version_id,
        tournament_id=data.tournament_id,
        match_date=data.match_date,
    )


@admin.post("/scrims")
def create_scrim(data: ScrimCreate, db: Session = Depends(get_db)):
    return draft_service.create_scrim(
        db,
        match_date=data.match_date,
        version_id=data.version_id,
        tournament_id=data.tournament_id,
        mode=data.mode,
        team_a_name=data.team_a_name,
        team_b_name=data.team_b_name,
        best_of=data.best_of,
    )


@admin.get("/matches/{key}")
def get_match(key: str, db: Session = Depends(get_db)):
    return draft_service.get_match(db, key)


@admin.delete("/matches/{match_id}", response_model=MessageResponse)
def delete_match(match_id: int, db: Session = Depends(get_db)):
    return draft_service.delete_match(db, match_id)


@admin.get("/matches/{key}/team-pools")
def match_team_pools(key: str, db: Session = Depends(get_db)):
    match = draft_service.get_match(db, key)
    return team_pool_service.get_match_team_pools(db, match["team_a_name"], match["team_b_name"])


@admin.post("/matches/{match_id}/games")
def create_game(match_id: int, data: GameCreate, db: Session = Depends(get_db)):
    return draft_service.create_game(db, match_id, data.blue_team_name, data.red_team_name)


@admin.post("/matches/{match_id}/summary")
def save_scrim_summary(match_id: int, data: ScrimSummary, db: Session = Depends(get_db)):
    return draft_service.save_scrim_summary(db, match_id, data.games)


@admin.get("/games/{game_id}")
def get_game(game_id: int, db: Session = Depends(get_db)):
    return draft_service.get_game(db, game_id)


@admin.post("/draft/replay")
def draft_replay(data: DraftReplay):
    """Validates a lock-in order and returns the resulting draft state."""
    return replay_draft(data.hero_ids).snapshot()


@admin.post("/games/{game_id}/finish")
def finish_game(game_id: int, data: GameFinish, db: Session = Depends(get_db)):
    return draft_service.finish_game(
        db,
        game_id=game_id,
        winner=data.winner,
        blue_picks=data.blue_picks,
        red_picks=data.red_picks,
        blue_bans=data.blue_bans,
        red_bans=data.red_bans,
        assignments=data.assignments,
        mvp_hero_id=data.mvp_hero_id,
        notes=data.notes,
    )


# --- Team pools (ad-hoc pair of names) ---

@admin.get("/team-pools")
def team_pools(team_a: str, team_b: str, db: Session = Depends(get_db)):
    return team_pool_service.get_match_team_pools(db, team_a, team_b)


# --- Matchups ---

@admin.get("/matchups")
def list_matchups(
    version_id: int,
    hero_id: int,
    position: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return matchups_service.get_matchups(db, version_id, hero_id, position)


@admin.post("/matchups", response_model=MessageResponse)
def save_matchups(data: MatchupSave, db: Session = Depends(get_db)):
    return matchups_service.save_matchups(
        db,
        data.version_id,
        data.hero_id,
        data.position,
        [m.model_dump() for m in data.matchups],
    )


@admin.get("/matchups/suggestions")
def matchup_suggestions(version_id: int, hero_id: int | None = Query(default=None), db: Session = Depends(get_db)):
    return matchups_service.suggest_matchups(db, version_id, hero_id)


@admin.delete("/matchups/{matchup_id}", response_model=MessageResponse)
def delete_matchup(matchup_id: int, db: Session = Depends(get_db)):
    return matchups_service.delete_matchup(db, matchup_id)


# --- Combos ---

@admin.get("/combos")
def list_combos(version_id: int, db: Session = Depends(get_db)):
    return combos_service.get_combos(db, version_id)


@admin.get("/combos/suggestions")
def combo_suggestions(version_id: int, db: Session = Depends(get_db)):
    return combos_service.suggest_combos(db, version_id)


@admin.post("/combos")
def save_combo(data: ComboCreate, db: Session = Depends(get_db)):
    return combos_service.save_combo(
        db,
        version_id=data.version_id,
        hero_a_id=data.hero_a_id,
        hero_b_id=data.hero_b_id,
        synergy_score=data.synergy_score,
        hero_a_position=data.hero_a_position,
        hero_b_position=data.hero_b_position,
        description=data.description,
    )


@admin.put("/combos/{combo_id}", response_model=MessageResponse)
def update_combo(combo_id: int, data: ComboUpdate, db: Session = Depends(get_db)):
    return combos_service.update_combo(
        db,
        combo_id,
        synergy_score=data.synergy_score,
        description=data.description,
        hero_a_position=data.hero_a_position,
        hero_b_position=data.hero_b_position,
    )


@admin.delete("/combos/{combo_id}", response_model=MessageResponse)
def delete_combo(combo_id: int, db: Session = Depends(get_db)):
    return combos_service.delete_combo(db, combo_id)


# --- Win conditions ---

@admin.post("/win-conditions/analyze")
def analyze_win_condition(data: WinConditionAnalyze, db: Session = Depends(get_db)):
    return win_conditions_service.analyze(
        db,
        _conditions(data.allyConditions),
        _conditions(data.enemyConditions),
        data.tournamentId,
    )


@admin.get("/win-conditions")
def list_win_conditions(db: Session = Depends(get_db)):
    return win_conditions_service.get_win_conditions(db)


@admin.post("/win-conditions")
def create_win_condition(data: WinConditionSave, db: Session = Depends(get_db)):
    return win_conditions_service.create_win_condition(
        db,
        name=data.name,
        ally_conditions=_conditions(data.ally_conditions),
        enemy_conditions=_conditions(data.enemy_conditions),
        version=data.version,
        tournament_id=data.tournament_id,
    )


@admin.get("/win-conditions/{wc_id}")
def get_win_condition(wc_id: int, db: Session = Depends(get_db)):
    return win_conditions_service.get_win_condition(db, wc_id)


@admin.put("/win-conditions/{wc_id}", response_model=MessageResponse)
def update_win_condition(wc_id: int, data: WinConditionSave, db: Session = Depends(get_db)):
    return win_conditions_service.update_win_condition(
        db,
        wc_id,
        name=data.name,
        ally_conditions=_conditions(data.ally_conditions),
        enemy_conditions=_conditions(data.enemy_conditions),
        version=data.version,
        tournament_id=data.tournament_id,
    )


@admin.post("/win-conditions/{wc_id}/analyze")
def run_saved_win_condition(wc_id: int, db: Session = Depends(get_db)):
    """Analyses a saved win condition and caches the result on it."""
    wc = win_conditions_service.get_win_condition(db, wc_id)
    result = win_conditions_service.analyze(db, wc["ally_conditions"], wc["enemy_conditions"], wc["tournament_id"])
    win_conditions_service.update_win_condition_result(db, wc_id, result)
    return result


@admin.delete("/win-conditions/{wc_id}", response_model=MessageResponse)
def delete_win_condition(wc_id: int, db: Session = Depends(get_db)):
    return win_conditions_service.delete_win_condition(db, wc_id)


# --- Meta ---

@admin.get("/meta")
def meta_stats(
    version_id: int | None = Query(default=None),
    mode: str = Query(default="ALL"),
    tournament: str | None = Query(default=None),
    team: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    tournament_id = tournaments_service.resolve_tournament_id(db, tournament)
    return meta_service.get_meta_stats(db, version_id, mode, tournament_id, team)


app.include_router(admin)
