# essaylab/services/llm.py
import os
import time
import logging
from typing import Optional

from openai import OpenAI

from essaylab.core.config import OPENAI_MODEL, LLM_TIMEOUT, LLM_SDK_RETRIES, SYSTEM_PROMPT

log = logging.getLogger("llm")

_client: Optional[OpenAI] = None


class LLMError(RuntimeError):
    ...


def _get_client() -> OpenAI:
    global _client
    if _client is None:
        if not os.getenv("OPENAI_API_KEY"):
            raise LLMError("Missing OPENAI_API_KEY")
        # Official OpenAI 1.x client, with longer timeout & built-in retries
        _client = OpenAI(timeout=LLM_TIMEOUT, max_retries=LLM_SDK_RETRIES)
    return _client


def _chat(messages: list) -> str:
    """Single call to OpenAI Chat Completions."""
    model = os.getenv("OPENAI_MODEL", OPENAI_MODEL)
    log.info("LLM chat call model=%s, messages=%d", model, len(messages))
    resp = _get_client().chat.completions.create(model=model, messages=messages)
    return resp.choices[0].message.content or ""


def complete(prompt: str, max_retries: int = 1) -> str:
    """
    Prompt text in, completion text out.
    Raises LLMError when the service cannot be reached or keeps failing.
    """
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]

    last_err: Exception | None = None
    for attempt in range(max_retries + 1):
        try:
            return _chat(messages)
        except LLMError:
            raise
        except Exception as e:
            last_err = e
            log.warning("LLM call failed (attempt %d): %s", attempt + 1, e)
            if attempt < max_retries:
                time.sleep(1.0 + 0.75 * attempt)
    raise LLMError(f"LLM call failed: {last_err}")
