import os, re, json, logging
from typing import Any, Dict, List, Optional

from essaylab.core import config

log = logging.getLogger("storage")

TABLES = {"survey_responses", "text_snapshots", "interaction_logs"}


def _data_dir() -> str:
    # read at call time so tests can point DATA_DIR elsewhere
    d = config.DATA_DIR
    os.makedirs(d, mode=0o700, exist_ok=True)
    return d


def insert(table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    """Append one row to DATA_DIR/<table>.jsonl and return it."""
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    path = os.path.join(_data_dir(), f"{table}.jsonl")
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(row, ensure_ascii=False, default=str) + "\n")
    return row


def read_all(table: str) -> List[Dict[str, Any]]:
    path = os.path.join(_data_dir(), f"{table}.jsonl")
    if not os.path.isfile(path):
        return []
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


_PARTICIPANT_ID = re.compile(r"[A-Za-z0-9_-]+")


def _participant_path(participant_id: str) -> str:
    if not _PARTICIPANT_ID.fullmatch(participant_id or ""):
        raise ValueError(f"Invalid participant id: {participant_id!r}")
    d = os.path.join(_data_dir(), "participants")
    os.makedirs(d, mode=0o700, exist_ok=True)
    return os.path.join(d, f"{participant_id}.json")


def load_participant(participant_id: str) -> Optional[Dict[str, Any]]:
    path = _participant_path(participant_id)
    if not os.path.isfile(path):
        return None
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_participant(participant_id: str, data: Dict[str, Any]) -> None:
    path = _participant_path(participant_id)
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
    os.replace(tmp, path)
