"""
Parse revision-tool responses into anchored issues.

Response grammar (shared with the prompt templates in services/prompts.py;
changing one means changing the other):

    ### Issue 1
    > "exact text from the essay"
    >
    > **Issue**: short explanation
    >
    > **Fix**: "replacement text"

Sections start at every `### Issue <n>` heading; anything before the first
heading is ignored. Inside a section:

- the anchor is the first `>` line holding a double-quoted string
  (straight or curly quotes) that is not a labeled field;
- labeled fields are `**Name**` markers, optionally inside a blockquote,
  with the colon inside or after the bold marker. Recognised names
  (case-insensitive): Issue, Fix, Suggestion, Addition label,
  Addition text, Insertion point.

An anchored issue is kept only if its anchor occurs verbatim in the essay.
Only the argument tool may report issues without an anchor.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from essaylab.models.issue import Addition, Issue, Replacement, ToolType
from essaylab.services.anchors import find_all_occurrences

log = logging.getLogger("parser")

SECTION_DELIMITER = re.compile(r"### Issue \d+")

FIELD_NAMES = ("issue", "fix", "suggestion", "addition label", "addition text", "insertion point")

_FIELD_LINE = re.compile(
    r"^>?\s*\*\*\s*(?P<name>" + "|".join(n.replace(" ", r"\s+") for n in FIELD_NAMES) + r")\s*[:：]?\s*\*\*"
    r"\s*[:：]?\s*(?P<value>.*)$",
    re.IGNORECASE,
)
_QUOTED = re.compile(r'"([^"]+)"|“([^”]+)”')
_QUOTE_PAIRS = (('"', '"'), ("“", "”"))


def _unquote(value: str) -> str:
    value = value.strip()
    for open_q, close_q in _QUOTE_PAIRS:
        if len(value) >= 2 and value.startswith(open_q) and value.endswith(close_q):
            return value[1:-1].strip()
    return value


def _field(line: str) -> Optional[tuple]:
    m = _FIELD_LINE.match(line)
    if not m:
        return None
    name = " ".join(m.group("name").lower().split())
    return name, _unquote(m.group("value"))


def _anchor(lines: List[str]) -> Optional[str]:
    for line in lines:
        if not line.startswith(">") or ('"' not in line and "“" not in line):
            continue
        if _field(line):
            continue
        payload = re.sub(r"^>\s*", "", line).strip()
        unquoted = _unquote(payload)
        if unquoted != payload:
            return unquoted
        m = _QUOTED.search(payload)
        if m:
            return (m.group(1) or m.group(2)).strip()
        return payload
    return None


def split_sections(raw_response: str) -> List[str]:
    return SECTION_DELIMITER.split(raw_response or "")[1:]


def parse_section(section: str) -> Dict[str, Optional[str]]:
    """Extract the anchor and labeled fields of one section. Later duplicates win."""
    lines = [ln.strip() for ln in section.strip().split("\n")]
    fields: Dict[str, Optional[str]] = {"anchor": _anchor(lines)}
    for line in lines:
        parsed = _field(line)
        if parsed:
            fields[parsed[0]] = parsed[1]
    return fields


def _remedy(tool_type: ToolType, fields: Dict[str, Optional[str]]):
    if tool_type.response_format == "addition":
        if fields.get("addition text"):
            return Addition(
                label=fields.get("addition label") or "",
                insertion_text=fields["addition text"],
                insertion_point=fields.get("insertion point") or "",
            )
        return None
    if fields.get("fix") is not None:
        return Replacement(replacement_text=fields["fix"])
    return None


def parse_issues(tool_type: ToolType, raw_response: str, essay: str) -> List[Issue]:
    tool_type = ToolType(tool_type)
    issues: List[Issue] = []

    for section in split_sections(raw_response):
        fields = parse_section(section)
        anchor = fields.get("anchor") or ""

        if anchor:
            if not find_all_occurrences(essay, anchor):
                log.warning("Quoted text not found in essay for %s: %r", tool_type.value, anchor)
                continue
        elif tool_type is not ToolType.ARGUMENT:
            log.info("Skipping %s section without a quoted anchor", tool_type.value)
            continue
        elif not (fields.get("issue") or fields.get("suggestion") or fields.get("fix")
                  or fields.get("addition text")):
            continue

        suggestion = fields.get("suggestion")
        if suggestion is None and tool_type.response_format == "addition":
            # older argument prompts put the advice under **Fix**
            suggestion = fields.get("fix")

        seq = len(issues) + 1
        issues.append(Issue(
            id=f"{tool_type.value}-{seq}",
            tool_type=tool_type,
            anchor_text=anchor,
            issue_description=fields.get("issue") or "",
            suggestion=suggestion,
            remedy=_remedy(tool_type, fields),
            sequence_number=seq,
        ))

    log.info("Extracted %d issues for %s", len(issues), tool_type.value)
    return issues
