from typing import Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from essaylab.core.config import PROMPTS, STAGE_MINUTES, STAGE_TITLES, WARNING_SECONDS, TOOLS
from essaylab.services.conditions import InvalidStudyCode, assign_condition, parse_study_code
from essaylab.services.revise import RevisionWorkspace, UnknownStage, get_workspace, register
from essaylab.services.session import get_or_create_session

router = APIRouter(tags=["session"])


class StartRequest(BaseModel):
    code: Optional[str] = None          # e.g. "4a"
    condition: Optional[int] = None
    prompt_id: Optional[str] = None
    participant_id: Optional[str] = None


class StageRequest(BaseModel):
    stage: str


def workspace_or_404(session_id: str) -> RevisionWorkspace:
    ws = get_workspace(session_id)
    if ws is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return ws


def describe(ws: RevisionWorkspace) -> dict:
    return {
        **ws.session.model_dump(),
        "stage": ws.stage,
        "stage_title": STAGE_TITLES[ws.stage],
        "stage_minutes": STAGE_MINUTES[ws.stage],
        "warning_seconds": list(WARNING_SECONDS),
        "topic": ws.topic,
        "ai_enabled": ws.ai_enabled,
        "text": ws.text,
        "previous_content": ws.previous_content(),
        "tools": [{"id": k, **v} for k, v in TOOLS.items()],
    }


@router.post("/sessions")
def start_session(req: StartRequest):
    try:
        if req.code:
            condition, prompt_id = parse_study_code(req.code)
        else:
            condition = req.condition or assign_condition()
            prompt_id = (req.prompt_id or "a").lower()
            if prompt_id not in PROMPTS:
                raise InvalidStudyCode(f"Unknown prompt id: {prompt_id}")
        session = get_or_create_session(condition, prompt_id, req.participant_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    ws = get_workspace(session.session_id) or register(RevisionWorkspace(session))
    return describe(ws)


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return describe(workspace_or_404(session_id))


@router.post("/sessions/{session_id}/stage")
async def change_stage(session_id: str, req: StageRequest):
    ws = workspace_or_404(session_id)
    try:
        ws.go_to_stage(req.stage)
    except UnknownStage:
        raise HTTPException(status_code=400, detail=f"Unknown stage: {req.stage}")
    return describe(ws)


@router.get("/sessions/{session_id}/stats")
async def stats(session_id: str):
    return workspace_or_404(session_id).stats()
