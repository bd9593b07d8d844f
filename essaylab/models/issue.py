from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field

from essaylab.core.config import TOOLS


class ToolType(str, Enum):
    PROOFREADER = "proofreader"
    CLARITY = "clarity"
    ARGUMENT = "argument"

    @property
    def display_name(self) -> str:
        return TOOLS[self.value]["name"]

    @property
    def color(self) -> str:
        return TOOLS[self.value]["color"]

    @property
    def response_format(self) -> str:
        return TOOLS[self.value]["format"]


class IssueState(str, Enum):
    """UI-facing card state. RESOLVED is never stored, only derived."""
    ACTIVE = "active"
    COLLAPSED = "collapsed"
    DISMISSED = "dismissed"
    RESOLVED = "resolved"


class Replacement(BaseModel):
    kind: Literal["replace"] = "replace"
    replacement_text: str  # "" means delete the anchor


class Addition(BaseModel):
    kind: Literal["addition"] = "addition"
    label: str = ""
    insertion_text: str = ""
    insertion_point: str = ""


Remedy = Annotated[Union[Replacement, Addition], Field(discriminator="kind")]


class Issue(BaseModel):
    id: str
    tool_type: ToolType
    anchor_text: str = ""
    issue_description: str = ""
    suggestion: Optional[str] = None
    remedy: Optional[Remedy] = None
    resolved: bool = False
    sequence_number: int
    state: IssueState = IssueState.ACTIVE

    @computed_field
    @property
    def display_state(self) -> IssueState:
        return IssueState.RESOLVED if self.resolved else self.state


class ToolInvocationResult(BaseModel):
    tool_type: ToolType
    raw_response: str
    status: Literal["success", "error"]
    sequence: int = 0
    duration_ms: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InvocationTicket(BaseModel):
    tool_type: ToolType
    sequence: int
    epoch: int


class Span(BaseModel):
    text: str
    start: int
    end: int
    issue_ids: List[str] = Field(default_factory=list)
    tool_types: List[ToolType] = Field(default_factory=list)
    resolved_flags: List[bool] = Field(default_factory=list)

    @computed_field
    @property
    def overlapping(self) -> bool:
        return len(self.issue_ids) > 1


class EditResult(BaseModel):
    text: str
    start: int
    end: int
    applied: bool = True
