"""Prompt templates for claim adjudication against retrieved sources."""

ADJUDICATION_PROMPT = """You are a professional fact-checker. Given a claim and a set of sources, decide from the text of the sources whether the claim is true, false, or whether there is insufficient information.

Consider all sources together.

Sources:
{sources}

Original text fragment: {original_text}

Claim to verify: {claim}

Respond with a JSON object with these fields:
- "claim": the claim
- "assessment": exactly one of "True", "False", "Insufficient Information"
- "summary": why the claim is correct, or if it is not, what is correct
- "fixed_original_text": if the assessment is False, the original text with only the factual error corrected
- "confidence_score": a number from 0 to 100 (100 = completely confident in your decision)
- "time_sensitivity_note": if the claim depends on recent or fast-changing information that the sources or your knowledge may not cover, explain the limitation; otherwise omit it

Write summary and fixed_original_text in the language of the claim. Keep the assessment values in English."""

SOURCE_TEMPLATE = """Source {index}:
Text: {text}
URL: {url}
Title: {title}
"""

VERDICT_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "claim": {"type": "string"},
        "assessment": {
            "type": "string",
            "enum": ["True", "False", "Insufficient Information"],
        },
        "summary": {"type": "string"},
        "fixed_original_text": {"type": "string"},
        "confidence_score": {"type": "number", "minimum": 0, "maximum": 100},
        "time_sensitivity_note": {"type": "string"},
    },
    "required": ["claim", "assessment", "summary", "confidence_score"],
}


def format_sources(evidence: list) -> str:
    """Render evidence items for the adjudication prompt."""
    return "\n".join(
        SOURCE_TEMPLATE.format(
            index=index,
            text=item.text or "No text content",
            url=item.url or "No URL",
            title=item.title or "Untitled",
        )
        for index, item in enumerate(evidence, start=1)
    )
