"""
Participant identity and the interaction log.

A `Session` is created once when a participant starts and is passed to
whatever records events; nothing here keeps module-level state.
"""
from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any, Optional

from essaylab.models.study import LogEntry, Session
from essaylab.utils import storage

log = logging.getLogger("session")

_ALPHABET = string.ascii_lowercase + string.digits


def new_participant_id() -> str:
    return "p_" + "".join(secrets.choice(_ALPHABET) for _ in range(9))


def get_or_create_session(condition: int, prompt_id: str,
                          participant_id: Optional[str] = None) -> Session:
    """
    Return the participant's persisted session, creating the identifiers on
    first use. A returning participant keeps their session id.
    """
    participant_id = participant_id or new_participant_id()
    saved = storage.load_participant(participant_id)
    if saved and saved.get("session_id"):
        return Session(
            participant_id=participant_id,
            session_id=saved["session_id"],
            condition=saved.get("condition", condition),
            prompt_id=saved.get("prompt_id", prompt_id),
        )

    session = Session(
        participant_id=participant_id,
        session_id=f"{participant_id}_{int(time.time() * 1000)}",
        condition=condition,
        prompt_id=prompt_id,
    )
    storage.save_participant(participant_id, session.model_dump())
    log.info("Created session %s (condition=%d, prompt=%s)", session.session_id, condition, prompt_id)
    return session


class EventLogger:
    """Builds interaction-log rows for one session and hands them to storage."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.stage: Optional[str] = None
        self._stage_started = 0.0

    def set_stage(self, stage: str) -> None:
        self.stage = stage
        self._stage_started = time.monotonic()

    def time_from_stage_start(self) -> int:
        if self.stage is None:
            return 0
        return int((time.monotonic() - self._stage_started) * 1000)

    def log(self, event_type: str, /, **event_data: Any) -> Optional[LogEntry]:
        if self.stage is None:
            log.warning("Attempting to log %s without setting stage first", event_type)
            return None
        entry = LogEntry(
            participant_id=self.session.participant_id,
            session_id=self.session.session_id,
            stage=self.stage,
            time_from_stage_start=self.time_from_stage_start(),
            event_type=event_type,
            event_data={**event_data, "timestamp": int(time.time() * 1000)},
        )
        try:
            storage.insert("interaction_logs", entry.model_dump(mode="json"))
        except OSError as e:
            # the study log must never interrupt writing
            log.error("Failed to write log entry %s: %s", event_type, e)
        return entry

    # convenience wrappers mirroring the client-side events
    def button_click(self, button_id: str, **context: Any) -> Optional[LogEntry]:
        return self.log(f"button:{button_id}", buttonId=button_id, context=context)

    def api_call(self, api_type: str, prompt: str, response: str, status: str,
                 duration: Optional[int] = None, **context: Any) -> Optional[LogEntry]:
        return self.log(f"api_call:{status}", apiType=api_type, prompt=prompt,
                        response=response, status=status, duration=duration, **context)

    def navigation(self, from_stage: Optional[str], to_stage: str) -> Optional[LogEntry]:
        return self.log("navigation:stage_change", fromStage=from_stage, toStage=to_stage)
