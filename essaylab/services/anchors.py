"""
Locate issue anchors in the essay and turn them into highlight spans.

Every occurrence of an anchor is highlighted, and a character covered by
several issues keeps all of them, so the editor can style overlapping
concerns differently from single ones.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from essaylab.models.issue import Issue, Span


def find_all_occurrences(haystack: str, needle: str) -> List[Tuple[int, int]]:
    """
    Return [start, end) ranges of every verbatim occurrence of `needle`.
    The scan resumes one character after each match, so overlapping
    repeats ("aa" in "aaa") are each reported.
    """
    if not needle:
        return []
    ranges: List[Tuple[int, int]] = []
    pos = haystack.find(needle)
    while pos != -1:
        ranges.append((pos, pos + len(needle)))
        pos = haystack.find(needle, pos + 1)
    return ranges


def build_character_classification(haystack: str, issues: Iterable[Issue]) -> List[Dict[str, list]]:
    """
    Per character of `haystack`: the ids, tool types and resolved flags of
    every issue whose anchor covers it, in issue order.
    """
    chars: List[Dict[str, list]] = [
        {"issue_ids": [], "tool_types": [], "resolved_flags": []} for _ in haystack
    ]
    for issue in issues:
        for start, end in find_all_occurrences(haystack, issue.anchor_text):
            for i in range(start, end):
                entry = chars[i]
                # overlapping occurrences of one anchor must not count twice
                if entry["issue_ids"] and entry["issue_ids"][-1] == issue.id:
                    continue
                entry["issue_ids"].append(issue.id)
                entry["tool_types"].append(issue.tool_type)
                entry["resolved_flags"].append(issue.resolved)
    return chars


def group_into_spans(haystack: str, chars: List[Dict[str, list]]) -> List[Span]:
    """Merge runs of characters carrying identical annotations."""
    if not haystack:
        return []

    spans: List[Span] = []
    start = 0
    for i in range(1, len(haystack) + 1):
        if i < len(haystack) and chars[i] == chars[start]:
            continue
        ann = chars[start]
        spans.append(Span(
            text=haystack[start:i],
            start=start,
            end=i,
            issue_ids=list(ann["issue_ids"]),
            tool_types=list(ann["tool_types"]),
            resolved_flags=list(ann["resolved_flags"]),
        ))
        start = i
    return spans


def highlight_spans(haystack: str, issues: Iterable[Issue]) -> List[Span]:
    return group_into_spans(haystack, build_character_classification(haystack, issues))
