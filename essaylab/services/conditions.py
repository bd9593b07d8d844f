from __future__ import annotations

import random
import re
from typing import Dict, Optional, Tuple

from essaylab.core.config import CONDITIONS, CONDITION_WEIGHTS, PROMPTS, STAGES

_CODE = re.compile(r"^\s*(\d+)\s*([A-Za-z])\s*$")


class InvalidStudyCode(ValueError):
    ...


def parse_study_code(code: str) -> Tuple[int, str]:
    """'2c' -> (2, 'c'). Condition must be configured, prompt letter known."""
    m = _CODE.match(code or "")
    if not m:
        raise InvalidStudyCode(f"Please enter a valid code like '1a', '2b', '3c', or '4d' (got {code!r})")
    condition, prompt_id = int(m.group(1)), m.group(2).lower()
    if condition not in CONDITIONS or prompt_id not in PROMPTS:
        raise InvalidStudyCode(f"Please enter a valid code like '1a', '2b', '3c', or '4d' (got {code!r})")
    return condition, prompt_id


def assign_condition(rng: Optional[random.Random] = None,
                     weights: Optional[Dict[int, float]] = None) -> int:
    weights = weights or CONDITION_WEIGHTS
    conditions = [c for c in weights if weights[c] > 0]
    rng = rng or random.Random()
    return rng.choices(conditions, weights=[weights[c] for c in conditions], k=1)[0]


def has_ai_support(condition: int, stage: str) -> bool:
    if stage not in STAGES:
        raise ValueError(f"Unknown stage: {stage}")
    return bool(CONDITIONS.get(condition, {}).get(stage, False))
