"""
REST API for the snooker scorer.
Thin wrappers around the match controller. One controller per app, held on
app.state; confirmation prompts belong to the client, so the controller here
always confirms.
"""
from __future__ import annotations

import logging
import os
import sys
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from snooker.balls import DEFAULT_REDS, MAX_FOUL_POINTS, MAX_REDS, MIN_FOUL_POINTS, MIN_REDS
from snooker.models import MatchValidationError
from snooker.persistence import MatchStore, PersistenceError, get_db_path
from snooker.services import (
    ActionRejectedError,
    ActionResult,
    MatchController,
    MatchNotFoundError,
)

LOG_LEVEL_ENV = "SNOOKER_LOG_LEVEL"
CORS_ORIGINS_ENV = "SNOOKER_CORS_ORIGINS"

logger = logging.getLogger(__name__)


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(
        level=os.environ.get(LOG_LEVEL_ENV, "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = MatchStore(get_db_path())
    app.state.controller = MatchController(store=store)
    # Pick up a match left in the current slot by a previous run
    try:
        app.state.controller.resume_match()
    except MatchNotFoundError:
        logger.info("No unfinished match to resume")
    except (MatchValidationError, ActionRejectedError) as e:
        logger.warning("Stored current match not loaded: %s", e)
    logger.info("Snooker scorer API ready (db=%s)", get_db_path())
    yield


def cors_origins() -> list[str]:
    """Browser origins allowed by CORS, from a comma-separated env var."""
    raw = os.environ.get(CORS_ORIGINS_ENV, "")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


# ---------- FastAPI app ----------
app = FastAPI(
    title="Snooker Scorer API",
    description="Scorekeeping for snooker matches: shots, breaks, frames, statistics",
    version="0.1.0",
    lifespan=lifespan,
)
if cors_origins():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )


def get_controller(request: Request) -> MatchController:
    return request.app.state.controller


@contextmanager
def controller_errors() -> Generator:
    """Map controller exceptions to HTTP errors."""
    try:
        yield
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ActionRejectedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))


def _respond(controller: MatchController, result: ActionResult) -> dict[str, Any]:
    return {"result": result.to_dict(), "snapshot": controller.snapshot()}


# ---------- Request models ----------


class StartMatchRequest(BaseModel):
    player1: str = Field(..., min_length=1, max_length=100)
    player2: str = Field(..., min_length=1, max_length=100)
    best_of: int = Field(default=5, ge=1, le=35)
    reds: int = Field(default=DEFAULT_REDS, ge=MIN_REDS, le=MAX_REDS)


class PotRequest(BaseModel):
    ball: str
    count: int = Field(default=1, ge=1, le=MAX_REDS)
    used_rest: bool = False
    is_escape: bool = False
    action_id: str | None = Field(None, description="Client id for this selection; repeats are ignored")


class MissRequest(BaseModel):
    ball: str | None = None
    used_rest: bool = False
    is_escape: bool = False
    action_id: str | None = None


class SafetyRequest(BaseModel):
    ball: str | None = None
    used_rest: bool = False
    action_id: str | None = None


class FoulRequest(BaseModel):
    points: int = Field(..., ge=MIN_FOUL_POINTS, le=MAX_FOUL_POINTS)
    play_again: bool = False
    free_ball: bool = False
    reds_potted: int = Field(default=0, ge=0, le=MAX_REDS)
    ball: str | None = None
    action_id: str | None = None


class ImportMatchRequest(BaseModel):
    document: str = Field(..., description="Exported match JSON")


class SettingsUpdate(BaseModel):
    auto_save: bool | None = None
    confirm_actions: bool | None = None


# ---------- Matches (storage) ----------


@app.post("/matches")
def start_match(req: StartMatchRequest, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.start_match(req.player1, req.player2, best_of=req.best_of, reds=req.reds)
    return _respond(controller, result)


@app.get("/matches")
def list_matches(controller: MatchController = Depends(get_controller)) -> list[dict[str, Any]]:
    """Match history, most recent first."""
    with controller_errors():
        matches = controller.history()
    return [
        {
            "id": m.id,
            "players": m.players,
            "best_of": m.best_of,
            "status": m.status,
            "winner": m.winner,
            "created": m.created,
            "updated": m.updated,
            "frames_played": len(m.frames),
        }
        for m in matches
    ]


@app.post("/matches/import")
def import_match(req: ImportMatchRequest, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.import_match(req.document)
    return _respond(controller, result)


@app.post("/matches/{match_id}/resume")
def resume_match(match_id: str, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.resume_match(match_id)
    return _respond(controller, result)


@app.delete("/matches/{match_id}")
def delete_match(match_id: str, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.delete_match(match_id)
    return {"result": result.to_dict()}


# ---------- Live match ----------


@app.get("/match")
def get_match(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    return controller.snapshot()


@app.get("/match/legal-balls")
def legal_balls(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return {"legal_balls": controller.legal_balls()}


@app.get("/match/stats")
def match_stats(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return controller.view_stats()


@app.get("/match/export")
def export_match(controller: MatchController = Depends(get_controller)) -> Response:
    with controller_errors():
        body = controller.export_match()
        filename = controller.export_filename()
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/match/start-play")
def start_play(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.start_play())


@app.post("/match/pause")
def pause(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.pause())


@app.post("/match/resume")
def resume(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.resume())


@app.post("/match/pot")
def pot(req: PotRequest, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.pot(
            req.ball,
            count=req.count,
            used_rest=req.used_rest,
            is_escape=req.is_escape,
            action_id=req.action_id,
        )
    return _respond(controller, result)


@app.post("/match/miss")
def miss(req: MissRequest, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.miss(
            req.ball, used_rest=req.used_rest, is_escape=req.is_escape, action_id=req.action_id
        )
    return _respond(controller, result)


@app.post("/match/safety")
def safety(req: SafetyRequest, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.safety(req.ball, used_rest=req.used_rest, action_id=req.action_id)
    return _respond(controller, result)


@app.post("/match/foul")
def foul(req: FoulRequest, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        result = controller.foul(
            req.points,
            play_again=req.play_again,
            free_ball=req.free_ball,
            reds_potted=req.reds_potted,
            ball=req.ball,
            action_id=req.action_id,
        )
    return _respond(controller, result)


@app.post("/match/end-break")
def end_break(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.end_break())


@app.post("/match/end-frame")
def end_frame(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.end_frame())


@app.post("/match/next-frame")
def next_frame(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.start_next_frame())


@app.post("/match/undo")
def undo(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    with controller_errors():
        return _respond(controller, controller.undo())


# ---------- Settings ----------


@app.get("/settings")
def get_settings(controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    return dict(controller.settings)


@app.put("/settings")
def update_settings(req: SettingsUpdate, controller: MatchController = Depends(get_controller)) -> dict[str, Any]:
    """Change only the preferences sent; the rest keep their values."""
    return controller.update_settings(req.model_dump(exclude_none=True))


# ---------- Run with: uvicorn snooker.api:app --reload ----------
