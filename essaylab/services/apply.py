"""
Apply an issue's remedy to the essay.

Replacements swap the first occurrence of the anchor. Additions are placed
according to the model's insertion-point hint, tried in this order:

1. ``After the sentence: "<S>"`` - after the first <S>, skipping any closing
   punctuation and whitespace that follow it
2. ``After paragraph <N>`` - after the Nth blank-line separated paragraph and
   its separator
3. after the first occurrence of the issue's anchor
4. at the end of the essay

Both return the new text plus the range of the inserted text so the editor can
select it.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from essaylab.models.issue import Addition, EditResult, Issue, Replacement

log = logging.getLogger("apply")

_AFTER_SENTENCE = re.compile(r'after\s+the\s+sentence\s*[:：]?\s*["“](?P<s>.+?)["”](?=[\s.,;:]*(?:$|\())', re.IGNORECASE)
_AFTER_PARAGRAPH = re.compile(r"after\s+paragraph\s+(?P<n>\d+)", re.IGNORECASE)
_SENTENCE_TAIL = re.compile(r"""[.!?…"'”’)\]]*\s*""")
_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")


def apply_replacement(essay: str, anchor: str, replacement: str) -> EditResult:
    pos = essay.find(anchor) if anchor else -1
    if pos == -1:
        log.info("Anchor no longer present, leaving essay unchanged: %r", anchor)
        return EditResult(text=essay, start=0, end=0, applied=False)
    text = essay[:pos] + replacement + essay[pos + len(anchor):]
    return EditResult(text=text, start=pos, end=pos + len(replacement))


def _after_sentence(essay: str, sentence: str) -> Optional[int]:
    pos = essay.find(sentence)
    if pos == -1:
        return None
    end = pos + len(sentence)
    return _SENTENCE_TAIL.match(essay, end).end()


def _after_paragraph(essay: str, n: int) -> Optional[int]:
    if n < 1:
        return None
    count = 0
    last_end = 0
    for m in _PARAGRAPH_BREAK.finditer(essay):
        if m.start() == 0:
            continue  # leading blank lines are not a paragraph
        count += 1
        if count == n:
            return m.end()
        last_end = m.end()
    # the last paragraph has no separator after it, if there is one at all
    if count + 1 == n and essay[last_end:].strip():
        return len(essay)
    return None


def resolve_insertion_point(essay: str, insertion_point: str, anchor: str = "") -> int:
    hint = (insertion_point or "").strip()

    m = _AFTER_SENTENCE.search(hint)
    if m:
        offset = _after_sentence(essay, m.group("s"))
        if offset is not None:
            return offset
        log.info("Insertion sentence not found: %r", m.group("s"))

    m = _AFTER_PARAGRAPH.search(hint)
    if m:
        offset = _after_paragraph(essay, int(m.group("n")))
        if offset is not None:
            return offset
        log.info("Insertion paragraph out of range: %s", m.group("n"))

    if anchor:
        pos = essay.find(anchor)
        if pos != -1:
            return pos + len(anchor)

    return len(essay)


def apply_addition(essay: str, addition: Addition, anchor: str = "") -> EditResult:
    text = addition.insertion_text
    if not text:
        return EditResult(text=essay, start=0, end=0, applied=False)

    offset = resolve_insertion_point(essay, addition.insertion_point, anchor)
    lead = " " if offset > 0 and not essay[offset - 1].isspace() else ""
    trail = " " if offset < len(essay) and not essay[offset].isspace() else ""

    start = offset + len(lead)
    new = essay[:offset] + lead + text + trail + essay[offset:]
    return EditResult(text=new, start=start, end=start + len(text))


def apply_issue(essay: str, issue: Issue) -> EditResult:
    remedy = issue.remedy
    if isinstance(remedy, Replacement):
        return apply_replacement(essay, issue.anchor_text, remedy.replacement_text)
    if isinstance(remedy, Addition):
        return apply_addition(essay, remedy, issue.anchor_text)
    log.info("Issue %s has no applicable remedy", issue.id)
    return EditResult(text=essay, start=0, end=0, applied=False)
