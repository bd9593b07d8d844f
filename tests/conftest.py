# tests/conftest.py
from __future__ import annotations
import shutil
import tempfile
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from essaylab.main import app
from essaylab.core import config
from essaylab.models.study import Session
from essaylab.services import revise as revise_mod
from essaylab.services.revise import RevisionWorkspace

# --------------------------------------------------------------------
# Temporary DATA_DIR so tests don't pollute the real data dir
# --------------------------------------------------------------------
@pytest.fixture(scope="session")
def tmp_data_dir() -> Generator[str, None, None]:
    d = tempfile.mkdtemp(prefix="test-data-")
    yield d
    shutil.rmtree(d, ignore_errors=True)

@pytest.fixture(autouse=True, scope="session")
def patch_data_dir(tmp_data_dir):
    config.DATA_DIR = tmp_data_dir

@pytest.fixture(autouse=True)
def fresh_workspaces():
    revise_mod.reset_workspaces()
    yield
    revise_mod.reset_workspaces()

# --------------------------------------------------------------------
# FastAPI test client available as fixture `client`
# --------------------------------------------------------------------
@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app)

# --------------------------------------------------------------------
# Sample essay and model responses
# --------------------------------------------------------------------
ESSAY = "The cat sat on the mat."

PROOFREAD_RESPONSE = (
    "Here are the issues I found.\n\n"
    "### Issue 1\n"
    '> "cat sat"\n'
    ">\n"
    "> **Issue**: informal phrasing\n"
    ">\n"
    '> **Fix**: "feline rested"\n'
)

@pytest.fixture
def essay() -> str:
    return ESSAY

@pytest.fixture
def proofread_response() -> str:
    return PROOFREAD_RESPONSE

@pytest.fixture
def revision_session() -> Session:
    return Session(participant_id="p_test00001", session_id="p_test00001_1", condition=4, prompt_id="a")

@pytest.fixture
def workspace(revision_session, proofread_response) -> RevisionWorkspace:
    """Revision-stage workspace whose model always answers with the proofreading sample."""
    ws = RevisionWorkspace(revision_session, complete=lambda prompt: proofread_response)
    ws.go_to_stage("revision")
    return ws

# --------------------------------------------------------------------
# Stub the LLM so tests never reach the network
# --------------------------------------------------------------------
class FakeLLM:
    def __init__(self):
        self.responses = {}
        self.prompts = []
        self.fail = False

    def __call__(self, prompt: str) -> str:
        from essaylab.services.llm import LLMError
        self.prompts.append(prompt)
        if self.fail:
            raise LLMError("service unavailable")
        for marker, response in self.responses.items():
            if marker in prompt:
                return response
        return "No issues found."

@pytest.fixture
def fake_llm(monkeypatch) -> FakeLLM:
    from essaylab.services import llm as llm_mod
    fake = FakeLLM()
    monkeypatch.setattr(llm_mod, "complete", fake)
    return fake
