"""
Prompt templates.

The revision-tool prompts ask for the response grammar that
services/parser.py reads (### Issue headings, blockquoted quote, bold
field labels). Keep them in step.
"""
from textwrap import dedent

from essaylab.models.issue import ToolType


def proofreader(draft: str) -> str:
    return dedent("""
        Please briefly review the following essay for the most critical typos, grammatical mistakes, and punctuation issues:

        {draft}

        Identify only 2-3 of the most important issues. For each issue:
        1. Number the issue (Issue 1, Issue 2, etc.)
        2. Quote the problematic phrase EXACTLY as it appears in the text (keep it under 10 words), using "double quotes".
        3. Very briefly explain the problem in 5-10 words.
        4. Suggest a concise fix.

        Format as:
        ### Issue 1
        > "problematic text"
        >
        > **Issue**: Brief explanation
        >
        > **Fix**: "corrected version"

        Be extremely concise. Only identify actual errors.
        The quoted "problematic text" must appear EXACTLY as written in the original text - this is critical.
    """).format(draft=draft)


def clarity(draft: str) -> str:
    return dedent("""
        Please briefly review the following essay for the most unclear passages:

        {draft}

        Identify only 2-3 of the most problematic passages. For each issue:
        1. Number the issue (Issue 1, Issue 2, etc.)
        2. Quote the unclear phrase EXACTLY as it appears in the text (keep it under 10 words), using "double quotes".
        3. Very briefly explain the clarity issue in 5-10 words.
        4. Suggest a clearer alternative.

        Format as:
        ### Issue 1
        > "unclear text"
        >
        > **Issue**: Brief explanation
        >
        > **Fix**: "clearer version"

        Be extremely concise. Focus only on clarity issues.
        The quoted "unclear text" must appear EXACTLY as written in the original text - this is critical.
    """).format(draft=draft)


def argument(draft: str) -> str:
    return dedent("""
        Please briefly review the following essay for the most significant weak arguments:

        {draft}

        Identify only 2-3 of the most important issues. For each issue:
        1. Number the issue (Issue 1, Issue 2, etc.)
        2. If the weakness is tied to a passage, quote it EXACTLY as it appears in the text (keep it under 10 words), using "double quotes". Omit the quote for whole-essay suggestions.
        3. Very briefly explain the weakness in 5-10 words.
        4. Suggest a specific, concise improvement.
        5. Write one or two sentences the writer could add, and say where they belong.

        Format as:
        ### Issue 1
        > "weak argument"
        >
        > **Issue**: Brief explanation
        >
        > **Suggestion**: Suggested improvement
        >
        > **Addition label**: Short name for the addition
        >
        > **Addition text**: "Sentence(s) to add."
        >
        > **Insertion point**: After the sentence: "exact sentence from the essay"

        The insertion point is either After the sentence: "..." or After paragraph N.
        Be extremely concise. Focus only on substantive improvements.
        The quoted "weak argument" must appear EXACTLY as written in the original text - this is critical.
    """).format(draft=draft)


TOOL_PROMPTS = {
    ToolType.PROOFREADER: proofreader,
    ToolType.CLARITY: clarity,
    ToolType.ARGUMENT: argument,
}


def tool_prompt(tool_type: ToolType, essay: str) -> str:
    return TOOL_PROMPTS[ToolType(tool_type)](essay)


# ---- "Get ideas" assistance per stage -----------------------------------

def outline_ideas(topic: str) -> str:
    return dedent("""
        I am planning to write a 300 word argumentative essay on the topic: {topic}.
        Please give me 3 distinct thesis ideas for this essay:
        - The first should argue in favor of the topic (pro position)
        - The second should argue against the topic (con position)
        - The third should be a nuanced or alternative perspective

        Each idea must be extremely concise (10-15 words maximum) and make a clear argument.

        Format your response with bullet points.

        Do not include any additional explanation text before or after the bullet points.
        Do not indicate which ideas are pro or con.
    """).format(topic=topic)


def draft_ideas(topic: str, outline: str) -> str:
    return dedent("""
        I'm writing a 300 word essay on the topic: {topic}.
        Here's my outline:
        {outline}

        Please provide a complete draft based on the outline.
        Do not include any additional explanation text before or after the draft.
    """).format(topic=topic, outline=outline)


def revision_ideas(topic: str, draft: str) -> str:
    return dedent("""
        I'm revising a 300 word essay on the topic: {topic}.
        Here's my draft:
        {draft}

        Please suggest 3 concrete ways to improve it, as short bullet points.
        Do not include any additional explanation text before or after the bullet points.
    """).format(topic=topic, draft=draft)


def stage_prompt(stage: str, topic: str, previous: str) -> str:
    if stage == "outline":
        return outline_ideas(topic)
    if stage == "draft":
        return draft_ideas(topic, previous)
    if stage == "revision":
        return revision_ideas(topic, previous)
    raise ValueError(f"Unknown stage: {stage}")
