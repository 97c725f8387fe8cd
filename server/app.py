"""FastAPI application -- routes for the Recite memorization planner."""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Optional

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from recite.errors import (
    DayNotScheduledError,
    NoActiveSessionError,
    PassageNotFoundError,
    PlanNotFoundError,
    PlanValidationError,
)
from recite.models import PassageKey
from recite.repository import PassageRepository
from recite.session import RecitationTester
from recite.storage import PlanStore
from server.config import Settings
from server.dependencies import get_plan_store, get_repository, get_settings, get_tester
from server.schemas import (
    CompletionResponse,
    ContainersResponse,
    PassageKeySchema,
    PassageResponse,
    PlanCreateRequest,
    PlanDetailResponse,
    PlansResponse,
    PlanStatsResponse,
    PlanValidateRequest,
    RecitationResultResponse,
    RecitationStartRequest,
    RecitationStartResponse,
    RecitationSubmitRequest,
    ScoreRequest,
    ScoreResponse,
    TodayResponse,
    VerdictResponse,
    VersionsResponse,
)
from server.services import recitation_service
from server.__version__ import __version__

logger = logging.getLogger("recite.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: init the catalog DB when it serves passages; everything else loads lazily."""
    settings = app.dependency_overrides.get(get_settings, get_settings)()
    ts = datetime.utcnow().isoformat() + "Z"
    if settings.use_sql_catalog:
        from server.db.session import init_db
        init_db(settings)
        logger.info("[%s] Startup: SQL catalog ready at %s", ts, settings.database_url)
    else:
        logger.info("[%s] Startup: begin (catalog loads on first request)", ts)
    yield
    ts_end = datetime.utcnow().isoformat() + "Z"
    logger.info("[%s] Shutdown: complete", ts_end)


app = FastAPI(title="Recite", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _key(schema: PassageKeySchema, version_code: str) -> PassageKey:
    return PassageKey(
        container_code=schema.container_code.upper(),
        sub_unit=schema.sub_unit,
        unit=schema.unit,
        version_code=schema.version_code or version_code,
    )


def _range_keys(body: PlanValidateRequest, settings: Settings):
    start = _key(body.start, settings.default_version)
    end = _key(body.end, start.version_code)
    return start, end


def _rejected(e: PlanValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"kind": e.verdict.kind.value, "message": e.message},
    )


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    """Minimal health check. No deps, no catalog load. Always returns immediately."""
    return {"ok": True}


# ---- Catalog ----

@app.get("/versions", response_model=VersionsResponse)
def versions(repository: PassageRepository = Depends(get_repository)):
    return recitation_service.list_versions(repository)


@app.get("/versions/{version_code}/containers", response_model=ContainersResponse)
def containers(version_code: str, repository: PassageRepository = Depends(get_repository)):
    return recitation_service.list_containers(repository, version_code)


@app.get("/passages/{passage_id}", response_model=PassageResponse)
def passage(passage_id: str, repository: PassageRepository = Depends(get_repository)):
    try:
        return recitation_service.get_passage(repository, passage_id)
    except PassageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ---- Plans ----

@app.post("/plans/validate", response_model=VerdictResponse)
def plans_validate(
    body: PlanValidateRequest,
    settings: Settings = Depends(get_settings),
    repository: PassageRepository = Depends(get_repository),
):
    """Check a candidate plan. Rule failures are a 200 with valid=false."""
    start, end = _range_keys(body, settings)
    try:
        return recitation_service.validate(
            repository, start, end, body.target_date,
            start_date=body.start_date,
            max_daily_load=settings.max_daily_load,
        )
    except PassageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/plans", response_model=PlanDetailResponse, status_code=201)
def plans_create(
    body: PlanCreateRequest,
    settings: Settings = Depends(get_settings),
    store: PlanStore = Depends(get_plan_store),
    repository: PassageRepository = Depends(get_repository),
):
    start, end = _range_keys(body, settings)
    try:
        return recitation_service.create(
            store, repository, body.title, start, end, body.target_date,
            start_date=body.start_date,
            max_daily_load=settings.max_daily_load,
        )
    except PassageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PlanValidationError as e:
        raise _rejected(e)


@app.get("/plans", response_model=PlansResponse)
def plans_list(store: PlanStore = Depends(get_plan_store)):
    return recitation_service.list_plans(store)


@app.get("/plans/{plan_id}", response_model=PlanDetailResponse)
def plans_get(
    plan_id: str,
    store: PlanStore = Depends(get_plan_store),
    repository: PassageRepository = Depends(get_repository),
):
    try:
        return recitation_service.get_plan(store, repository, plan_id)
    except (PlanNotFoundError, PassageNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.delete("/plans/{plan_id}")
def plans_delete(plan_id: str, store: PlanStore = Depends(get_plan_store)):
    try:
        store.delete_plan(plan_id)
    except PlanNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True, "plan_id": plan_id}


@app.post("/plans/{plan_id}/days/{day}/complete", response_model=CompletionResponse)
def plans_day_complete(plan_id: str, day: date, store: PlanStore = Depends(get_plan_store)):
    try:
        return recitation_service.set_day_completion(store, plan_id, day, True)
    except (PlanNotFoundError, DayNotScheduledError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/plans/{plan_id}/days/{day}/incomplete", response_model=CompletionResponse)
def plans_day_incomplete(plan_id: str, day: date, store: PlanStore = Depends(get_plan_store)):
    try:
        return recitation_service.set_day_completion(store, plan_id, day, False)
    except PlanNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/plans/{plan_id}/stats", response_model=PlanStatsResponse)
def plans_stats(plan_id: str, store: PlanStore = Depends(get_plan_store)):
    try:
        return recitation_service.get_plan_stats(store, plan_id)
    except PlanNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/today", response_model=TodayResponse)
def today(
    day: Optional[date] = None,
    store: PlanStore = Depends(get_plan_store),
    repository: PassageRepository = Depends(get_repository),
):
    return recitation_service.today_overview(store, repository, today=day)


# ---- Scoring ----

@app.post("/score", response_model=ScoreResponse)
def score(body: ScoreRequest, repository: PassageRepository = Depends(get_repository)):
    try:
        return recitation_service.score_passages(repository, body.passage_ids, body.attempt, body.mode)
    except PassageNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


# ---- Recitation tests ----

@app.post("/tests/start", response_model=RecitationStartResponse)
def tests_start(body: RecitationStartRequest, tester: RecitationTester = Depends(get_tester)):
    try:
        return recitation_service.start_recitation(tester, body.plan_id, body.scope, today=body.today)
    except (PlanNotFoundError, PassageNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/tests/submit", response_model=RecitationResultResponse)
def tests_submit(body: RecitationSubmitRequest, tester: RecitationTester = Depends(get_tester)):
    try:
        return recitation_service.submit_recitation(tester, body.user_input, end_session=body.end_session)
    except NoActiveSessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("Submission failed")
        raise HTTPException(status_code=500, detail="Submission failed")
