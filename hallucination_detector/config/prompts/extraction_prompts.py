"""Prompt templates for claim extraction.

The extraction model must answer with ``{"claims": [{"claim", "original_text"}]}``
and keep the language of the input text.
"""

CLAIM_EXTRACTION_PROMPT = """You are an expert at identifying claims that can be verified or refuted with external sources.

Focus on statements a reader might question ("is this really true?"):
1. Concrete facts: figures, dates, places, relationships between people, events
2. Verifiable descriptions: technical properties, research results, market performance, policies
3. Quotes and attributions: who said what, statistics and their sources
4. Causal statements: X causes Y, A affects B
5. Comparisons: faster, better, first, largest

Do not extract personal feelings, aesthetic judgements, rhetoric, metaphors,
uncontroversial common knowledge, or definitions.

If a statement mixes opinion with verifiable content, extract the verifiable part.
When in doubt, extract it and let verification decide.
For long inputs, keep the most important and most questionable claims.
Do not repeat claims. For every claim include the fragment of the original text that contains it.

Keep the original language: Chinese input gives Chinese claims, English input gives English claims.

Respond with a JSON object of the form:
{{"claims": [{{"claim": "...", "original_text": "..."}}]}}

Content to analyse:
{content}"""

CLAIMS_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "claims": {
            "type": "array",
            "description": "All verifiable claims found in the text",
            "items": {
                "type": "object",
                "properties": {
                    "claim": {"type": "string", "description": "The verifiable claim"},
                    "original_text": {
                        "type": "string",
                        "description": "Original text fragment containing the claim",
                    },
                },
                "required": ["claim", "original_text"],
            },
        }
    },
    "required": ["claims"],
}
