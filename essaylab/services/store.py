from __future__ import annotations

import logging
from typing import Dict, List, Optional

from essaylab.models.issue import (
    InvocationTicket, Issue, IssueState, Span, ToolInvocationResult, ToolType,
)
from essaylab.services.anchors import highlight_spans

log = logging.getLogger("store")


class IssueNotFound(KeyError):
    ...


# action -> (allowed from, resulting state)
_TRANSITIONS = {
    "collapse": ({IssueState.ACTIVE}, IssueState.COLLAPSED),
    "expand": ({IssueState.COLLAPSED}, IssueState.ACTIVE),
    "dismiss": ({IssueState.ACTIVE, IssueState.COLLAPSED}, IssueState.DISMISSED),
    "restore": ({IssueState.DISMISSED}, IssueState.ACTIVE),
}
ACTIONS = tuple(_TRANSITIONS)


class IssueStore:
    """
    Live issues of one writing stage, across all revision tools.

    Each tool type owns its own slice of the store: a new batch for a tool
    replaces that slice only. Responses are accepted through invocation
    tickets so that a slow, older run of a tool never overwrites a newer one,
    and nothing issued before the last clear_all() is accepted at all.
    """

    def __init__(self) -> None:
        self._issues: Dict[str, Issue] = {}
        self._results: Dict[ToolType, ToolInvocationResult] = {}
        self._issued: Dict[ToolType, int] = {}
        self._applied: Dict[ToolType, int] = {}
        self.epoch = 0

    # ---- reads -------------------------------------------------------
    def issues(self, tool_type: Optional[ToolType] = None) -> List[Issue]:
        if tool_type is None:
            return list(self._issues.values())
        return [i for i in self._issues.values() if i.tool_type == tool_type]

    def get(self, issue_id: str) -> Issue:
        try:
            return self._issues[issue_id]
        except KeyError:
            raise IssueNotFound(issue_id) from None

    @property
    def results(self) -> Dict[ToolType, ToolInvocationResult]:
        return dict(self._results)

    def spans(self, essay: str) -> List[Span]:
        return highlight_spans(essay, self._issues.values())

    # ---- writes ------------------------------------------------------
    def replace_tool_issues(self, tool_type: ToolType, issues: List[Issue]) -> None:
        tool_type = ToolType(tool_type)
        kept = {k: v for k, v in self._issues.items() if v.tool_type != tool_type}
        for issue in issues:
            if issue.tool_type != tool_type:
                raise ValueError(f"{issue.id} does not belong to {tool_type.value}")
            kept[issue.id] = issue
        self._issues = kept

    def recompute_resolved(self, essay: str) -> None:
        for issue in self._issues.values():
            if issue.anchor_text:
                issue.resolved = issue.anchor_text not in essay

    def clear_all(self) -> None:
        self._issues = {}
        self._results = {}
        self._applied = {}
        self.epoch += 1

    # ---- invocation tickets -----------------------------------------
    def begin_invocation(self, tool_type: ToolType) -> InvocationTicket:
        tool_type = ToolType(tool_type)
        seq = self._issued.get(tool_type, 0) + 1
        self._issued[tool_type] = seq
        return InvocationTicket(tool_type=tool_type, sequence=seq, epoch=self.epoch)

    def is_current(self, ticket: InvocationTicket) -> bool:
        return (
            ticket.epoch == self.epoch
            and ticket.sequence > self._applied.get(ticket.tool_type, 0)
        )

    def accept(self, ticket: InvocationTicket, result: ToolInvocationResult, issues: List[Issue]) -> bool:
        if not self.is_current(ticket):
            log.info(
                "Discarding stale %s result (seq=%d, epoch=%d; store epoch=%d, applied seq=%d)",
                ticket.tool_type.value, ticket.sequence, ticket.epoch,
                self.epoch, self._applied.get(ticket.tool_type, 0),
            )
            return False
        self._applied[ticket.tool_type] = ticket.sequence
        self._results[ticket.tool_type] = result
        self.replace_tool_issues(ticket.tool_type, issues)
        return True

    # ---- card state --------------------------------------------------
    def transition(self, issue_id: str, action: str) -> Issue:
        issue = self.get(issue_id)
        if action not in _TRANSITIONS:
            raise ValueError(f"Unknown action: {action}")
        allowed, target = _TRANSITIONS[action]
        if issue.state in allowed:
            issue.state = target
        return issue

    def mark_applied(self, issue_id: str) -> Issue:
        issue = self.get(issue_id)
        if issue.state is IssueState.ACTIVE:
            issue.state = IssueState.COLLAPSED
        return issue
