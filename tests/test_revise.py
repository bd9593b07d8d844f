import asyncio

import pytest

from essaylab.models.issue import IssueState, ToolInvocationResult, ToolType
from essaylab.models.study import Session
from essaylab.services.revise import AISupportDisabled, RevisionWorkspace
from essaylab.utils import storage

ARGUMENT_RESPONSE = (
    "### Issue 1\n"
    '> "The cat sat on the mat."\n'
    "> **Issue**: no reason given\n"
    "> **Addition label**: Reason\n"
    '> **Addition text**: "This shows feline behavior."\n'
    '> **Insertion point**: After the sentence: "The cat sat on the mat."\n'
)
CLARITY_RESPONSE = '### Issue 1\n> "on the mat"\n> **Issue**: where?\n> **Fix**: "on the kitchen mat"\n'


def _ws(session, fake_llm, text):
    ws = RevisionWorkspace(session)
    ws.go_to_stage("revision")
    ws.set_text(text)
    return ws


def test_run_tool_parses_and_stores(revision_session, fake_llm, essay, proofread_response):
    fake_llm.responses["typos"] = proofread_response
    ws = _ws(revision_session, fake_llm, essay)

    result = asyncio.run(ws.run_tool(ToolType.PROOFREADER))

    assert result.status == "success"
    assert result.raw_response == proofread_response
    assert [i.id for i in ws.issues()] == ["proofreader-1"]
    assert essay in fake_llm.prompts[0]


def test_failed_call_yields_failure_text_and_no_issues(revision_session, fake_llm, essay):
    ws = _ws(revision_session, fake_llm, essay)
    fake_llm.fail = True

    result = asyncio.run(ws.run_tool(ToolType.CLARITY))

    assert result.status == "error"
    assert result.raw_response == "Failed to use Writing clarity. Please try again."
    assert ws.issues() == []
    assert ws.store.results[ToolType.CLARITY].status == "error"


def test_scenario_apply_replacement_resolves(revision_session, fake_llm, essay, proofread_response):
    fake_llm.responses["typos"] = proofread_response
    ws = _ws(revision_session, fake_llm, essay)
    asyncio.run(ws.run_tool(ToolType.PROOFREADER))

    edit = ws.apply("proofreader-1")

    assert ws.text == "The feline rested on the mat."
    assert ws.text[edit.start:edit.end] == "feline rested"
    issue = ws.store.get("proofreader-1")
    assert issue.resolved
    assert issue.state is IssueState.COLLAPSED
    assert issue.display_state is IssueState.RESOLVED


def test_scenario_insert_addition(revision_session, fake_llm, essay):
    fake_llm.responses["weak arguments"] = ARGUMENT_RESPONSE
    ws = _ws(revision_session, fake_llm, essay)
    asyncio.run(ws.run_tool(ToolType.ARGUMENT))

    ws.apply("argument-1")

    assert ws.text == "The cat sat on the mat. This shows feline behavior."
    # anchor still present, so the issue is not resolved
    assert not ws.store.get("argument-1").resolved


def test_applying_stale_issue_leaves_text(revision_session, fake_llm, essay, proofread_response):
    fake_llm.responses["typos"] = proofread_response
    ws = _ws(revision_session, fake_llm, essay)
    asyncio.run(ws.run_tool(ToolType.PROOFREADER))
    ws.set_text("A dog ran.")

    edit = ws.apply("proofreader-1")

    assert not edit.applied
    assert ws.text == "A dog ran."
    assert ws.store.get("proofreader-1").resolved


def test_rerun_keeps_other_tools(revision_session, fake_llm, essay, proofread_response):
    fake_llm.responses["typos"] = proofread_response
    fake_llm.responses["unclear"] = CLARITY_RESPONSE
    ws = _ws(revision_session, fake_llm, essay)
    asyncio.run(ws.run_tool(ToolType.PROOFREADER))
    asyncio.run(ws.run_tool(ToolType.CLARITY))
    clarity_before = [i.model_dump() for i in ws.store.issues(ToolType.CLARITY)]

    fake_llm.responses["typos"] = '### Issue 1\n> "the mat"\n> **Issue**: x\n> **Fix**: "a mat"\n'
    asyncio.run(ws.run_tool(ToolType.PROOFREADER))

    assert [i.anchor_text for i in ws.store.issues(ToolType.PROOFREADER)] == ["the mat"]
    assert [i.model_dump() for i in ws.store.issues(ToolType.CLARITY)] == clarity_before


def test_stage_change_drops_late_results(revision_session, essay, proofread_response):
    ws = RevisionWorkspace(revision_session)
    ws.go_to_stage("revision")
    ws.set_text(essay)
    ticket = ws.store.begin_invocation(ToolType.PROOFREADER)

    ws.go_to_stage("draft")
    ws.go_to_stage("revision")
    late = ToolInvocationResult(tool_type=ToolType.PROOFREADER, raw_response=proofread_response, status="success")

    assert not ws.receive(ticket, late)
    assert ws.issues() == []


def test_response_is_checked_against_text_at_arrival(revision_session, essay, proofread_response):
    ws = RevisionWorkspace(revision_session)
    ws.go_to_stage("revision")
    ws.set_text(essay)
    ticket = ws.store.begin_invocation(ToolType.PROOFREADER)
    ws.set_text("The feline rested on the mat.")
    result = ToolInvocationResult(tool_type=ToolType.PROOFREADER, raw_response=proofread_response, status="success")

    assert ws.receive(ticket, result)
    assert ws.issues() == []


def test_reparse_uses_retained_response(revision_session, fake_llm, essay, proofread_response):
    fake_llm.responses["typos"] = proofread_response
    ws = _ws(revision_session, fake_llm, essay)
    asyncio.run(ws.run_tool(ToolType.PROOFREADER))
    ws.set_text("The feline rested on the mat.")
    assert ws.reparse(ToolType.PROOFREADER) == []
    ws.set_text(essay)
    assert [i.id for i in ws.reparse(ToolType.PROOFREADER)] == ["proofreader-1"]


def test_tools_require_revision_ai_support(fake_llm):
    session = Session(participant_id="p_nocond001", session_id="p_nocond001_1", condition=1, prompt_id="b")
    ws = RevisionWorkspace(session)
    ws.go_to_stage("revision")
    with pytest.raises(AISupportDisabled):
        asyncio.run(ws.run_tool(ToolType.PROOFREADER))


def test_revision_starts_from_draft(revision_session):
    ws = RevisionWorkspace(revision_session)
    ws.go_to_stage("draft")
    ws.set_text("My draft.")
    ws.go_to_stage("revision")
    assert ws.text == "My draft."
    assert ws.previous_content() == "My draft."


def test_tool_calls_are_logged(revision_session, fake_llm, essay):
    ws = _ws(revision_session, fake_llm, essay)
    asyncio.run(ws.run_tool(ToolType.PROOFREADER))
    events = [r["event_type"] for r in storage.read_all("interaction_logs")
              if r["session_id"] == revision_session.session_id]
    assert "button:revision_tool:Proof-reader" in events
    assert "api_call:success" in events


def test_stats(revision_session):
    ws = RevisionWorkspace(revision_session)
    assert ws.stats()["word_count"] == 0
    ws.set_text("Short essays are easy to read.")
    stats = ws.stats()
    assert stats["word_count"] == 6
    assert stats["flesch_reading_ease"] is not None


def test_injected_model_is_used_for_every_tool(workspace, essay):
    workspace.set_text(essay)
    asyncio.run(workspace.run_tool(ToolType.PROOFREADER))
    asyncio.run(workspace.run_tool(ToolType.CLARITY))
    # both tools quote "cat sat"; ids stay namespaced per tool
    assert [i.id for i in workspace.issues()] == ["proofreader-1", "clarity-1"]
    spans = [s for s in workspace.spans() if s.issue_ids]
    assert [s.issue_ids for s in spans] == [["proofreader-1", "clarity-1"]]
    assert spans[0].overlapping
