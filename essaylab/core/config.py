import os

MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", 2 * 1024 * 1024))  # essays + logs, 2 MB soft cap
DATA_DIR = os.getenv("DATA_DIR", "data")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# LLM configuration
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
LLM_TIMEOUT = 60.0
LLM_SDK_RETRIES = 3
SYSTEM_PROMPT = "You are a helpful assistant."

# Study design
STAGES = ("outline", "draft", "revision")

# Which stages get AI support, per condition
CONDITIONS = {
    1: {"outline": False, "draft": False, "revision": False},
    2: {"outline": True, "draft": False, "revision": False},
    3: {"outline": False, "draft": True, "revision": False},
    4: {"outline": False, "draft": False, "revision": True},
}

# Relative weights used when a participant arrives without a condition
CONDITION_WEIGHTS = {1: 1.0, 2: 1.0, 3: 1.0, 4: 1.0}

PROMPTS = {
    "a": "Should universities require standardized testing for admissions?",
    "b": "Should social media companies be responsible for moderating user content?",
    "c": "Should remote work become the standard for office jobs?",
    "d": "Should high schools make personal finance education mandatory?",
}

STAGE_TITLES = {
    "outline": "Write an Outline for an Essay",
    "draft": "Write a First Draft for an Essay",
    "revision": "Revise your Essay",
}

STAGE_MINUTES = {"outline": 10, "draft": 10, "revision": 10}
WARNING_SECONDS = (120, 60, 30)

# Revision tools: display name, tooltip, accent color, response format
TOOLS = {
    "proofreader": {
        "name": "Proof-reader",
        "description": "Find typos, grammatical mistakes, and misplaced punctuation",
        "color": "#FFC107",
        "format": "replace",
    },
    "clarity": {
        "name": "Writing clarity",
        "description": "Highlight unclear or hard to follow passages",
        "color": "#2196F3",
        "format": "replace",
    },
    "argument": {
        "name": "Argument Improver",
        "description": "Identify weak arguments and confusing points",
        "color": "#4CAF50",
        "format": "addition",
    },
}

TOOL_FAILURE_TEMPLATE = "Failed to use {name}. Please try again."
IDEAS_FAILURE_TEXT = "Failed to get ideas. Please try again."
