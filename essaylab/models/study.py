from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Literal, Optional
from datetime import datetime, timezone

Stage = Literal["outline", "draft", "revision"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    """Identity of one participant's run through the study. Built once, never mutated."""
    model_config = ConfigDict(frozen=True)

    participant_id: str
    session_id: str
    condition: int = Field(ge=1, le=4)
    prompt_id: str


class SurveySubmission(BaseModel):
    participant_id: str
    survey_type: Literal["pre", "post"]
    prompt_id: Optional[str] = None
    condition: Optional[int] = None
    responses: Dict[str, Any]
    timestamp: datetime = Field(default_factory=_now)


class SnapshotSubmission(BaseModel):
    participant_id: str
    stage: Stage
    time_from_stage_start: int = Field(ge=0)
    text_content: str
    type: str = "periodic"
    created_at: datetime = Field(default_factory=_now)


class LogEntry(BaseModel):
    participant_id: str
    session_id: str
    stage: Stage
    time_from_stage_start: int = 0
    event_type: str
    event_data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_now)
