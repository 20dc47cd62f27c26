"""Narrative synthesizer: turns filtered feed items into one Dutch report.

The synthesizer sends every filtered item to an OpenAI-compatible model
(Cerebras) in a single request and returns the completion verbatim.

Model Chain:
    Models are tried in order (primary first, then the configured fallbacks),
    stopping at the first success. Each model gets exactly one request: the
    OpenAI client is created with max_retries=0 and the agent is limited to
    one request per run. When every model fails, SynthesisError is raised.

Progress and failures are appended to the run log passed in by the caller.
"""

import logging
from collections.abc import Callable, Sequence

from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.usage import UsageLimits

from config import Config
from errors import SynthesisError
from models.feed_item import FeedItem
from models.report import SynthesisResult
from models.run import RunLog

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """Je bent een gedegen wielrenjournalist met kennis van alle wielerkoersen en van de geschiedenis van de belangrijke renners.

Schrijf een uitgebreid en diepgaand verslag van de aangeleverde artikelen. Combineer alle feiten tot één vloeiend verhaal, maar blijf zeer gedetailleerd:
- Geef context bij overwinningen: noem de ploegen, de omstandigheden (weer, parcours) en de gevolgen voor het klassement of het seizoen.
- Schrijf doorlopend proza: geen opsommingstekens, geen losse alinea's met kopjes en geen titels binnen de tekst.
- Voeg artikelen die door de tijd heen over dezelfde koers gaan samen tot één doorlopend verhaal.
- Noem in de titel of de openingszin het datumbereik, zodat duidelijk is over welke periode het nieuws gaat.
- Maak het verslag compleet en laat geen enkel detail uit de bronteksten weg.
- Gebruik GEEN markdown-opmaak (zoals vetgedrukte tekst met **sterretjes**). Schrijf alleen platte tekst.

De taal MOET Nederlands zijn."""

ITEM_SEPARATOR = "---"


def render_items(items: Sequence[FeedItem]) -> str:
    """Render items as one text block, in input order.

    Each item becomes a Titel/Datum/Snippet/Link block followed by the
    separator line.
    """
    blocks = [
        f"Titel: {item.title}\n"
        f"Datum: {item.date_label}\n"
        f"Snippet: {item.snippet}\n"
        f"Link: {item.link}\n"
        f"{ITEM_SEPARATOR}"
        for item in items
    ]
    return "\n".join(blocks)


def build_user_message(items: Sequence[FeedItem]) -> str:
    """Build the user message containing all rendered items."""
    return f"Hier zijn de artikelen:\n{render_items(items)}"


def describe_model_error(error: Exception) -> str:
    """Describe a model failure so an unknown model stands out from outages."""
    if isinstance(error, ModelHTTPError):
        if error.status_code == 404:
            return f"model onbekend of niet beschikbaar (HTTP 404): {error.body or error.message}"
        return f"API-fout (HTTP {error.status_code}): {error.body or error.message}"
    return f"{type(error).__name__}: {error}"


def _create_agent() -> Agent[None, str]:
    """Create the agent; the model is supplied per call."""
    return Agent(
        None,
        output_type=str,
        system_prompt=SYSTEM_PROMPT,
        retries=0,
    )


class NarrativeSynthesizer:
    """Generates the weekly cycling narrative with model fallback.

    Example:
        >>> synthesizer = NarrativeSynthesizer(config)
        >>> result = await synthesizer.synthesize(items, log)
        >>> result.model_used
        'llama-3.3-70b'
    """

    def __init__(
        self,
        config: Config,
        model_factory: Callable[[str], Model] | None = None,
    ):
        """Initialize the synthesizer.

        Args:
            config: Application configuration with the model chain and API key
            model_factory: Builds a model from an identifier. Defaults to a
                Cerebras-backed OpenAI chat model.
        """
        self.config = config
        self.models = config.models
        self._model_factory = model_factory or self._create_model
        self._needs_api_key = model_factory is None
        self._agent = _create_agent()

    def _create_model(self, model_id: str) -> Model:
        """Create a chat model against the Cerebras OpenAI-compatible API."""
        client = AsyncOpenAI(
            base_url=self.config.cerebras_base_url,
            api_key=self.config.cerebras_api_key,
            max_retries=0,
        )
        return OpenAIChatModel(model_id, provider=OpenAIProvider(openai_client=client))

    async def _complete(self, model_id: str, message: str) -> SynthesisResult:
        """Run one model once and wrap its output."""
        result = await self._agent.run(
            message,
            model=self._model_factory(model_id),
            usage_limits=UsageLimits(request_limit=1),
        )
        usage = result.usage()
        return SynthesisResult(
            text=result.output,
            model_used=model_id,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
        )

    async def synthesize(self, items: Sequence[FeedItem], log: RunLog) -> SynthesisResult:
        """Write one narrative covering all items.

        Args:
            items: Filtered items, in the order they should be presented
            log: Run log receiving one line per model attempt and failure

        Returns:
            Result of the first model that succeeded

        Raises:
            ValueError: If items is empty
            SynthesisError: If the API key is missing or every model failed
        """
        if not items:
            raise ValueError("synthesize requires at least one item")
        if self._needs_api_key and not self.config.cerebras_api_key:
            raise SynthesisError("CEREBRAS_API_KEY ontbreekt")

        message = build_user_message(items)
        last_error: Exception | None = None

        for index, model_id in enumerate(self.models):
            if index > 0:
                log.add(f"Schakelen naar fallback model {model_id}...")
            log.add(f"Cerebras aan het denken met model {model_id}...")
            try:
                result = await self._complete(model_id, message)
            except Exception as e:
                role = "primair" if index == 0 else "fallback"
                log.add(f"Fout met {role} model {model_id}: {describe_model_error(e)}")
                logger.warning(
                    "Model failed | model=%s attempt=%d/%d type=%s error=%s",
                    model_id, index + 1, len(self.models), type(e).__name__, e,
                )
                last_error = e
                continue

            logger.info(
                "Narrative generated | model=%s items=%d chars=%d input_tokens=%d output_tokens=%d",
                model_id, len(items), len(result.text), result.input_tokens, result.output_tokens,
            )
            return result

        if len(self.models) == 1:
            raise SynthesisError(
                f"Model {self.models[0]} faalde en er is geen fallback model ingesteld: "
                f"{describe_model_error(last_error)}"
            ) from last_error
        raise SynthesisError(
            f"Fallback model faalde ook: {describe_model_error(last_error)}"
        ) from last_error
