"""Pydantic request/response schemas for the Recite API."""

from datetime import date
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


# ---- Catalog ----

class VersionInfo(BaseModel):
    code: str
    name: str
    language: str = ""


class VersionsResponse(BaseModel):
    versions: List[VersionInfo]


class ContainerInfo(BaseModel):
    code: str
    name: str
    order: int
    sub_units: int


class ContainersResponse(BaseModel):
    version_code: str
    containers: List[ContainerInfo]


class PassageResponse(BaseModel):
    passage_id: str
    container_code: str
    container_name: str
    container_order: int
    sub_unit: int
    unit: int
    text: str
    version_code: str
    reference: str


# ---- Plans ----

class PassageKeySchema(BaseModel):
    container_code: str = Field(..., min_length=1, max_length=16)
    sub_unit: int = Field(..., ge=1)
    unit: int = Field(..., ge=1)
    version_code: Optional[str] = None


class PlanValidateRequest(BaseModel):
    start: PassageKeySchema
    end: PassageKeySchema
    target_date: date
    start_date: Optional[date] = None


class PlanCreateRequest(PlanValidateRequest):
    title: str = Field(default="Recitation plan", min_length=1, max_length=200)


class VerdictResponse(BaseModel):
    kind: str
    valid: bool
    message: str
    passage_count: int
    day_count: int
    average_per_day: float


class AllocationSchema(BaseModel):
    day_index: int
    date: date
    reference: str
    passage_ids: List[str]
    completed: bool


class PlanDetailResponse(BaseModel):
    plan_id: str
    title: str
    range: str
    version_code: str
    start_date: date
    target_date: date
    created_at: str
    progress: float
    days_remaining: int
    passage_count: int
    allocations: List[AllocationSchema]


class PlanListItem(BaseModel):
    plan_id: str
    title: str
    version_code: str
    start_date: date
    target_date: date
    progress: float
    days_remaining: int


class PlansResponse(BaseModel):
    plans: List[PlanListItem]
    overall_progress: float


class CompletionResponse(BaseModel):
    plan_id: str
    date: date
    completed: bool
    progress: float


class TodayItem(BaseModel):
    plan_id: str
    title: str
    day_index: int
    date: date
    reference: str
    completed: bool
    passages: List[PassageResponse]


class TodayResponse(BaseModel):
    date: date
    items: List[TodayItem]


# ---- Scoring ----

class DiffUnitSchema(BaseModel):
    kind: str
    text: str
    index: int


class ScoreRequest(BaseModel):
    passage_ids: List[str] = Field(..., min_length=1, max_length=500)
    attempt: str = Field(default="", max_length=200_000)
    mode: Literal["char", "word"] = "char"


class ScoreResponse(BaseModel):
    total_units: int
    correct_units: int
    accuracy: float
    passage_correct: Dict[str, bool]
    incorrect_passage_ids: List[str]
    diff_by_passage: Dict[str, List[DiffUnitSchema]]


# ---- Recitation tests ----

class RecitationStartRequest(BaseModel):
    plan_id: str
    scope: Literal["daily", "cumulative"] = "daily"
    today: Optional[date] = None


class RecitationStartResponse(BaseModel):
    plan_id: str
    scope: str
    passage_count: int
    passages: List[PassageResponse]


class RecitationSubmitRequest(BaseModel):
    # None -> score the inputs collected on the session
    user_input: Optional[str] = Field(default=None, max_length=200_000)
    end_session: bool = False


class RecitationResultResponse(BaseModel):
    result_id: str
    plan_id: str
    scope: str
    accuracy: float
    total_units: int
    correct_units: int
    total_passages: int
    correct_passages: int
    incorrect_passage_ids: List[str]
    user_input: str
    expected_text: str
    diff_by_passage: Dict[str, List[DiffUnitSchema]]
    tested_at: str


class PlanStatsResponse(BaseModel):
    plan_id: str
    total_tests: int
    average_accuracy: float
    best_accuracy: float
    worst_accuracy: float
    daily_tests: int
    cumulative_tests: int
    average_pct: str
    best_pct: str
    worst_pct: str
    weakest_passages: List[Dict[str, Any]] = Field(default_factory=list)
