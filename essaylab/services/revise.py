# essaylab/services/revise.py
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

import textstat
from starlette.concurrency import run_in_threadpool

from essaylab.core.config import STAGES, PROMPTS, TOOL_FAILURE_TEMPLATE, IDEAS_FAILURE_TEXT
from essaylab.models.issue import (
    EditResult, InvocationTicket, Issue, Span, ToolInvocationResult, ToolType,
)
from essaylab.models.study import Session
from essaylab.services import llm
from essaylab.services.apply import apply_issue
from essaylab.services.conditions import has_ai_support
from essaylab.services.parser import parse_issues
from essaylab.services.prompts import stage_prompt, tool_prompt
from essaylab.services.session import EventLogger
from essaylab.services.store import IssueStore

log = logging.getLogger("revise")


class UnknownStage(ValueError):
    ...


class AISupportDisabled(RuntimeError):
    ...


class RevisionWorkspace:
    """
    One participant's writing session: the essay text of each stage and the
    live revision issues of the current stage.

    Every change to the essay goes through set_text() or apply(), both of
    which reconcile the issue store before returning, so no caller ever sees
    a stale `resolved` flag.
    """

    def __init__(self, session: Session, complete: Optional[Callable[[str], str]] = None) -> None:
        self.session = session
        self.events = EventLogger(session)
        self.store = IssueStore()
        self.contents: Dict[str, str] = {s: "" for s in STAGES}
        self.stage = STAGES[0]
        self._complete = complete
        self.events.set_stage(self.stage)

    # ---- text --------------------------------------------------------
    @property
    def text(self) -> str:
        return self.contents[self.stage]

    @property
    def topic(self) -> str:
        return PROMPTS.get(self.session.prompt_id, "No prompt found for this ID")

    @property
    def ai_enabled(self) -> bool:
        return has_ai_support(self.session.condition, self.stage)

    def set_text(self, text: str) -> None:
        self.contents[self.stage] = text
        self.store.recompute_resolved(text)

    def previous_content(self) -> str:
        i = STAGES.index(self.stage)
        return self.contents[STAGES[i - 1]] if i > 0 else ""

    # ---- navigation --------------------------------------------------
    def go_to_stage(self, stage: str) -> None:
        if stage not in STAGES:
            raise UnknownStage(stage)
        previous = self.stage
        self.stage = stage
        # results still in flight belong to the stage we just left
        self.store.clear_all()
        if stage == "revision" and not self.contents[stage]:
            self.contents[stage] = self.contents["draft"]
        self.events.navigation(previous, stage)
        self.events.set_stage(stage)
        log.info("Session %s moved %s -> %s", self.session.session_id, previous, stage)

    # ---- revision tools ----------------------------------------------
    def _call_llm(self, prompt: str) -> str:
        complete = self._complete or llm.complete
        return complete(prompt)

    async def run_tool(self, tool_type: ToolType) -> ToolInvocationResult:
        """
        Ask the model for one tool's issues and merge them into the store.
        A failed call still produces a result (the failure text), which
        parses to zero issues.
        """
        tool_type = ToolType(tool_type)
        if not self.ai_enabled or self.stage != "revision":
            raise AISupportDisabled(f"Revision tools are not available in {self.stage} for this condition")

        ticket = self.store.begin_invocation(tool_type)
        prompt = tool_prompt(tool_type, self.text)
        self.events.button_click(f"revision_tool:{tool_type.display_name}")

        start = time.monotonic()
        try:
            raw = await run_in_threadpool(self._call_llm, prompt)
            status = "success"
        except Exception as e:
            log.error("Error with %s: %s", tool_type.display_name, e)
            raw = TOOL_FAILURE_TEMPLATE.format(name=tool_type.display_name)
            status = "error"
        duration = int((time.monotonic() - start) * 1000)
        self.events.api_call("openai", prompt, raw, status, duration, toolType=tool_type.value)

        result = ToolInvocationResult(
            tool_type=tool_type, raw_response=raw, status=status,
            sequence=ticket.sequence, duration_ms=duration,
        )
        self.receive(ticket, result)
        return result

    def receive(self, ticket: InvocationTicket, result: ToolInvocationResult) -> bool:
        """Parse a tool response against the current text and merge it if still wanted."""
        issues = parse_issues(result.tool_type, result.raw_response, self.text) \
            if self.store.is_current(ticket) else []
        accepted = self.store.accept(ticket, result, issues)
        if accepted:
            self.store.recompute_resolved(self.text)
        return accepted

    def reparse(self, tool_type: ToolType) -> List[Issue]:
        """Re-read the retained response of a tool against the current text."""
        tool_type = ToolType(tool_type)
        result = self.store.results.get(tool_type)
        if result is None:
            return []
        issues = parse_issues(tool_type, result.raw_response, self.text)
        self.store.replace_tool_issues(tool_type, issues)
        self.store.recompute_resolved(self.text)
        return issues

    # ---- remedies ----------------------------------------------------
    def apply(self, issue_id: str) -> EditResult:
        issue = self.store.get(issue_id)
        result = apply_issue(self.text, issue)
        if result.applied:
            self.set_text(result.text)
            self.store.mark_applied(issue_id)
        self.events.button_click(f"apply_issue:{issue_id}", applied=result.applied)
        return result

    def transition(self, issue_id: str, action: str) -> Issue:
        issue = self.store.transition(issue_id, action)
        self.events.button_click(f"{action}_issue:{issue_id}")
        return issue

    def issues(self) -> List[Issue]:
        return self.store.issues()

    def spans(self) -> List[Span]:
        return self.store.spans(self.text)

    # ---- ideas & stats -----------------------------------------------
    async def ideas(self) -> str:
        if not self.ai_enabled:
            raise AISupportDisabled(f"Ideas are not available in {self.stage} for this condition")
        prompt = stage_prompt(self.stage, self.topic, self.previous_content())
        self.events.button_click("get_ideas")
        start = time.monotonic()
        try:
            text = await run_in_threadpool(self._call_llm, prompt)
            status = "success"
        except Exception as e:
            log.error("Error fetching ideas for %s: %s", self.stage, e)
            text, status = IDEAS_FAILURE_TEXT, "error"
        self.events.api_call("openai", prompt, text, status, int((time.monotonic() - start) * 1000))
        return text

    def stats(self) -> dict:
        text = self.text
        if not text.strip():
            return {"word_count": 0, "character_count": len(text), "flesch_reading_ease": None}
        return {
            "word_count": textstat.lexicon_count(text),
            "character_count": len(text),
            "flesch_reading_ease": textstat.flesch_reading_ease(text),
        }


# In-memory registry of live workspaces, keyed by session id
_WORKSPACES: Dict[str, RevisionWorkspace] = {}


def register(workspace: RevisionWorkspace) -> RevisionWorkspace:
    return _WORKSPACES.setdefault(workspace.session.session_id, workspace)


def get_workspace(session_id: str) -> Optional[RevisionWorkspace]:
    return _WORKSPACES.get(session_id)


def reset_workspaces() -> None:
    _WORKSPACES.clear()
