"""Provider policy: which backend pair services a run.

Exactly two pairs exist and the choice is a single switch
(``DetectionConfig.use_domestic_providers``), resolved once per run into a
ProviderSelection. No stage may use a backend from the other pair.

| Pair          | Extraction | Search | Adjudication | Required credentials             |
|---------------|------------|--------|--------------|----------------------------------|
| international | anthropic  | exa    | anthropic    | anthropic_api_key, exa_api_key   |
| domestic      | deepseek   | bocha  | deepseek     | deepseek_api_key, bocha_api_key  |
"""

from pydantic import BaseModel, ConfigDict

from hallucination_detector.verification.credentials import CREDENTIAL_VALIDATORS
from hallucination_detector.verification.errors import InvalidInput, MissingCredentials
from hallucination_detector.verification.schemas import DetectionConfig, ProviderPair


class ProviderSelection(BaseModel):
    """Backends fixed for one run."""

    pair: ProviderPair
    extraction_provider: str
    search_provider: str
    adjudication_provider: str
    required_credentials: tuple[str, ...]

    model_config = ConfigDict(frozen=True)


PROVIDER_PAIRS: dict[ProviderPair, ProviderSelection] = {
    ProviderPair.INTERNATIONAL: ProviderSelection(
        pair=ProviderPair.INTERNATIONAL,
        extraction_provider="anthropic",
        search_provider="exa",
        adjudication_provider="anthropic",
        required_credentials=("anthropic_api_key", "exa_api_key"),
    ),
    ProviderPair.DOMESTIC: ProviderSelection(
        pair=ProviderPair.DOMESTIC,
        extraction_provider="deepseek",
        search_provider="bocha",
        adjudication_provider="deepseek",
        required_credentials=("deepseek_api_key", "bocha_api_key"),
    ),
}


def resolve_pair(config: DetectionConfig) -> ProviderPair:
    if config.use_domestic_providers:
        return ProviderPair.DOMESTIC
    return ProviderPair.INTERNATIONAL


def select_providers(config: DetectionConfig) -> ProviderSelection:
    """
    Resolve the provider pair for a run and check its credentials.

    Args:
        config: Per-run configuration

    Returns:
        ProviderSelection for the selected pair

    Raises:
        MissingCredentials: A required credential is absent or blank
        InvalidInput: strict_credentials is set and a key is malformed
    """
    selection = PROVIDER_PAIRS[resolve_pair(config)]
    credentials = config.credentials

    missing = [
        name for name in selection.required_credentials if not credentials.has(name)
    ]
    if missing:
        raise MissingCredentials(missing, selection.pair.value)

    if config.strict_credentials:
        malformed = [
            name
            for name in selection.required_credentials
            if not CREDENTIAL_VALIDATORS[name](getattr(credentials, name))
        ]
        if malformed:
            raise InvalidInput(
                f"Malformed credentials for {selection.pair.value} providers: "
                f"{', '.join(malformed)}"
            )

    return selection
