from typing import Literal
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from essaylab.api.routes_session import workspace_or_404
from essaylab.models.issue import ToolType
from essaylab.services.revise import AISupportDisabled, RevisionWorkspace
from essaylab.services.store import IssueNotFound

# Handlers touching a workspace are async so they run one at a time on the
# event loop, never interleaved with a tool result being merged.
router = APIRouter(tags=["revise"])


class TextUpdate(BaseModel):
    text: str


def snapshot(ws: RevisionWorkspace) -> dict:
    return {
        "text": ws.text,
        "issues": [i.model_dump(mode="json") for i in ws.issues()],
        "spans": [s.model_dump(mode="json") for s in ws.spans()],
        "results": {t.value: r.model_dump(mode="json") for t, r in ws.store.results.items()},
    }


@router.put("/sessions/{session_id}/text")
async def update_text(session_id: str, body: TextUpdate):
    ws = workspace_or_404(session_id)
    ws.set_text(body.text)
    return snapshot(ws)


@router.get("/sessions/{session_id}/issues")
async def list_issues(session_id: str):
    return snapshot(workspace_or_404(session_id))


@router.post("/sessions/{session_id}/tools/{tool_type}")
async def run_tool(session_id: str, tool_type: ToolType):
    ws = workspace_or_404(session_id)
    try:
        result = await ws.run_tool(tool_type)
    except AISupportDisabled as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"result": result.model_dump(mode="json"), **snapshot(ws)}


@router.post("/sessions/{session_id}/issues/{issue_id}/apply")
async def apply_issue(session_id: str, issue_id: str):
    ws = workspace_or_404(session_id)
    try:
        edit = ws.apply(issue_id)
    except IssueNotFound:
        raise HTTPException(status_code=404, detail="Issue not found")
    return {"edit": edit.model_dump(), **snapshot(ws)}


@router.post("/sessions/{session_id}/issues/{issue_id}/{action}")
async def change_issue_state(
    session_id: str,
    issue_id: str,
    action: Literal["collapse", "expand", "dismiss", "restore"],
):
    ws = workspace_or_404(session_id)
    try:
        issue = ws.transition(issue_id, action)
    except IssueNotFound:
        raise HTTPException(status_code=404, detail="Issue not found")
    return issue.model_dump(mode="json")


@router.post("/sessions/{session_id}/ideas")
async def ideas(session_id: str):
    ws = workspace_or_404(session_id)
    try:
        text = await ws.ideas()
    except AISupportDisabled as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"stage": ws.stage, "ideas": text}
