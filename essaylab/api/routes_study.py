import logging
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from essaylab.models.study import LogEntry, SnapshotSubmission, SurveySubmission
from essaylab.services import llm
from essaylab.utils import storage

log = logging.getLogger("study")

router = APIRouter(prefix="/api", tags=["study"])


class PromptRequest(BaseModel):
    prompt: str


@router.post("/openai")
def openai_proxy(req: PromptRequest):
    try:
        return {"completion": llm.complete(req.prompt)}
    except llm.LLMError as e:
        log.error("OpenAI API Error: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


def _insert(table: str, row: dict) -> dict:
    try:
        return storage.insert(table, row)
    except OSError as e:
        log.error("Storage error on %s: %s", table, e)
        raise HTTPException(status_code=500, detail="Could not store submission")


@router.post("/survey/submit")
def submit_survey(sub: SurveySubmission):
    return _insert("survey_responses", sub.model_dump(mode="json"))


@router.post("/snapshot/submit")
def submit_snapshot(sub: SnapshotSubmission):
    return _insert("text_snapshots", sub.model_dump(mode="json"))


@router.post("/log")
def submit_log(entry: LogEntry):
    return _insert("interaction_logs", entry.model_dump(mode="json"))
