"""Pipeline orchestration for the cycling news report.

This module coordinates one report run:

Pipeline Flow:
    1. FETCH: Download and parse the RSS feed
    2. FILTER: Keep recent items that are not about track cycling
    3. SYNTHESIZE: Have the model write one narrative (with model fallback)
    4. PERSIST: Store the narrative as a new Notion page

Stages run strictly one after another and each one gates the next. When no
item survives the filter the run ends early and successfully without calling
the model or Notion.

Error Handling:
    Stage failures (FetchError, SynthesisError, PersistError) and unexpected
    exceptions are caught here and turned into RunResult(success=False). The
    run log then ends with the error message. A failed Notion write still
    returns the generated narrative as content.
"""

import logging
import time
import uuid
from collections.abc import Callable
from datetime import date, datetime, timezone

from agents.synthesizer import NarrativeSynthesizer
from config import ERROR_CONTENT, NO_NEWS_CONTENT, Config
from errors import PipelineError
from feeds import fetch_feed
from filters import FilterCriteria, filter_items
from models.feed_item import FeedItem
from models.run import RunLog, RunResult
from notion_store import NotionStore
from observability.logging import clear_context, set_run_context

logger = logging.getLogger(__name__)


def _run_date(now: datetime) -> date:
    """Calendar date of the run in local time."""
    return now.astimezone().date()


class Pipeline:
    """Cycling news pipeline: feed, filter, narrative, Notion.

    Components:
        - fetch_feed: RSS download and parsing
        - NarrativeSynthesizer: Cerebras model chain via PydanticAI
        - NotionStore: page creation over the Notion REST API

    Example:
        >>> pipeline = Pipeline(Config.load())
        >>> result = await pipeline.run(days_back=6)
        >>> result.success
        True
    """

    def __init__(
        self,
        config: Config,
        synthesizer: NarrativeSynthesizer | None = None,
        store: NotionStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize pipeline with all components.

        Args:
            config: Application configuration
            synthesizer: Narrative synthesizer (built from config if omitted)
            store: Report store (built from config if omitted)
            clock: Returns the current aware datetime; used for the cutoff and run date
        """
        self.config = config
        self.synthesizer = synthesizer or NarrativeSynthesizer(config)
        self.store = store or NotionStore(config)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def fetch_and_filter(self, days_back: int, log: RunLog) -> list[FeedItem]:
        """Fetch the feed and return the items that pass the filter.

        Raises:
            FetchError: If the feed cannot be retrieved or parsed
        """
        log.add(f"Starten met ophalen nieuws ({days_back} dagen terug)...")
        items = await fetch_feed(self.config.feed_url, timeout=self.config.feed_timeout_seconds)
        log.add(f"RSS opgehaald: {len(items)} items gevonden.")

        criteria = FilterCriteria.for_days_back(days_back, now=self._clock())
        log.add(f"Cutoff datum: {criteria.cutoff.isoformat()}")

        filtered = filter_items(items, criteria)
        log.add(f"Na filter: {len(filtered)} artikelen overgebleven.")
        for index, item in enumerate(filtered, start=1):
            log.add(f"   [{index}] {item.title} ({item.date_label})")
        return filtered

    async def run(self, days_back: int) -> RunResult:
        """Execute one complete pipeline run.

        Never raises for stage failures: every outcome is a RunResult.

        Args:
            days_back: Look-back window in days (positive integer)

        Returns:
            RunResult with the run log and the narrative or a placeholder
        """
        run_id = uuid.uuid4().hex[:8]
        set_run_context(run_id)
        start = time.time()
        log = RunLog()
        content = ""

        if isinstance(days_back, bool) or not isinstance(days_back, int) or days_back <= 0:
            log.add(f"Error: aantal dagen terug moet een positief geheel getal zijn, niet {days_back!r}")
            clear_context()
            return RunResult(success=False, logs=log, content=ERROR_CONTENT)

        logger.info("Pipeline started | days_back=%d feed=%s", days_back, self.config.feed_url)

        try:
            filtered = await self.fetch_and_filter(days_back, log)

            if not filtered:
                log.add(NO_NEWS_CONTENT)
                logger.info("Pipeline done | duration=%.1fs items=0", time.time() - start)
                return RunResult(success=True, logs=log, content=NO_NEWS_CONTENT)

            log.add("Artikelen voorbereiden voor Cerebras...")
            synthesis = await self.synthesizer.synthesize(filtered, log)
            content = synthesis.text
            log.add("Cerebras klaar met schrijven.")

            log.add("Opslaan in Notion...")
            await self.store.persist(content, _run_date(self._clock()))
            log.add("Notion save gelukt!")

            logger.info(
                "Pipeline done | duration=%.1fs items=%d model=%s chars=%d",
                time.time() - start, len(filtered), synthesis.model_used, len(content),
            )
            return RunResult(success=True, logs=log, content=content)

        except PipelineError as e:
            log.add(f"Error: {e}")
            logger.error("Pipeline failed | type=%s error=%s", type(e).__name__, e)
        except Exception as e:
            log.add(f"Error: {e}")
            logger.error("Pipeline error | type=%s error=%s", type(e).__name__, e, exc_info=True)
        finally:
            clear_context()

        return RunResult(success=False, logs=log, content=content or ERROR_CONTENT)


async def run_once(config: Config, days_back: int) -> RunResult:
    """Run the pipeline once with components built from config."""
    return await Pipeline(config).run(days_back)
