"""Notion storage for generated reports.

This module writes each report as a new page in a Notion database and can
verify that the database has the columns the pipeline expects.

Page Layout:
    Nieuws (title): "Wielernieuws tm <DD mmm>" for the run date
    Datum (date): the run date in ISO format
    Omschrijving (rich text): the full narrative, one element per chunk
    Page body: one paragraph block per chunk

Notion limits a single rich text element to 2000 characters, so the
narrative is split into code-point chunks of at most CHUNK_SIZE before it is
written. Every call to persist() creates a new page; nothing is updated or
deduplicated.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import aiohttp

from config import (
    CHUNK_SIZE,
    NOTION_BODY_PROPERTY,
    NOTION_DATE_PROPERTY,
    NOTION_TITLE_PROPERTY,
    Config,
)
from errors import PersistError
from models.report import ReportRecord

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

TITLE_PREFIX = "Wielernieuws tm"

# Abbreviations as used in Dutch dates ("7 mrt")
DUTCH_MONTHS = ("jan", "feb", "mrt", "apr", "mei", "jun", "jul", "aug", "sep", "okt", "nov", "dec")

# Column name -> Notion property type
REQUIRED_PROPERTIES = {
    NOTION_TITLE_PROPERTY: "title",
    NOTION_DATE_PROPERTY: "date",
    NOTION_BODY_PROPERTY: "rich_text",
}


def chunk_text(text: str, size: int = CHUNK_SIZE) -> list[str]:
    """Split text into contiguous segments of at most size characters.

    Splitting is on code points, never inside a character, and ignores word
    boundaries. Joining the result gives back text exactly.

    Raises:
        ValueError: If size is not positive
    """
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [text[i:i + size] for i in range(0, len(text), size)]


def format_title_date(run_date: date) -> str:
    """Format a date as a Dutch day-month label, e.g. '07 mrt'."""
    return f"{run_date.day:02d} {DUTCH_MONTHS[run_date.month - 1]}"


def build_report_record(text: str, run_date: date) -> ReportRecord:
    """Create the record for one run's narrative."""
    return ReportRecord(
        title_label=f"{TITLE_PREFIX} {format_title_date(run_date)}",
        date_field=run_date,
        body_chunks=chunk_text(text),
        full_body=text,
    )


def build_page_payload(record: ReportRecord, database_id: str) -> dict[str, Any]:
    """Build the Notion 'create page' request body for a record."""
    children = [
        {
            "object": "block",
            "type": "paragraph",
            "paragraph": {
                "rich_text": [{"type": "text", "text": {"content": chunk}}],
            },
        }
        for chunk in record.body_chunks
    ]
    return {
        "parent": {"database_id": database_id},
        "properties": {
            NOTION_TITLE_PROPERTY: {
                "title": [{"text": {"content": record.title_label}}],
            },
            NOTION_DATE_PROPERTY: {
                "date": {"start": record.date_field.isoformat()},
            },
            NOTION_BODY_PROPERTY: {
                "rich_text": [{"text": {"content": chunk}} for chunk in record.body_chunks],
            },
        },
        "children": children,
    }


@dataclass
class StoreCheck:
    """Outcome of a Notion database check.

    Attributes:
        database_title: Plain-text title of the database
        properties: Column name -> Notion property type
        missing: Required columns that do not exist
        wrong_type: Required columns that exist with another type
    """

    database_title: str
    properties: dict[str, str] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)
    wrong_type: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.missing and not self.wrong_type

    @property
    def message(self) -> str:
        lines = [
            f'Verbinding geslaagd! Database: "{self.database_title}".',
            f"Gevonden kolommen: {', '.join(self.properties)}.",
        ]
        if self.missing:
            lines.append(f"WAARSCHUWING: de volgende kolommen ontbreken: {', '.join(self.missing)}.")
        if self.wrong_type:
            lines.append(f"WAARSCHUWING: verkeerd kolomtype voor: {', '.join(self.wrong_type)}.")
        if self.success:
            lines.append("Alle benodigde kolommen zijn aanwezig.")
        return "\n".join(lines)


def _error_detail(body: Any, status: int) -> str:
    """Extract Notion's error code and message from a response body."""
    if isinstance(body, dict) and body.get("message"):
        code = body.get("code", "error")
        return f"{code}: {body['message']}"
    return f"HTTP {status}"


class NotionStore:
    """Writes reports to a Notion database over the REST API."""

    def __init__(self, config: Config, session: aiohttp.ClientSession | None = None):
        """Initialize the store.

        Args:
            config: Application configuration with Notion credentials
            session: Existing client session (a new one is created per request if omitted)
        """
        self.config = config
        self._session = session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.notion_api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    def _require_credentials(self) -> None:
        if not self.config.notion_api_key or not self.config.notion_database_id:
            raise PersistError("NOTION_API_KEY of NOTION_DATABASE_ID ontbreekt")

    async def _request(self, method: str, path: str, payload: dict | None = None) -> dict[str, Any]:
        """Send one request to the Notion API and return the JSON body.

        Raises:
            PersistError: On non-2xx responses, timeouts or connection errors
        """
        self._require_credentials()
        url = f"{NOTION_API_URL}{path}"
        timeout = self.config.notion_timeout_seconds

        async def send(session: aiohttp.ClientSession) -> dict[str, Any]:
            async with session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                if resp.status >= 300:
                    detail = _error_detail(body, resp.status)
                    logger.warning("Notion request failed | method=%s path=%s status=%d detail=%s",
                                   method, path, resp.status, detail)
                    raise PersistError(f"Notion weigerde het verzoek (HTTP {resp.status}): {detail}")
                return body or {}

        try:
            if self._session is not None:
                return await send(self._session)
            async with aiohttp.ClientSession() as session:
                return await send(session)
        except asyncio.TimeoutError as e:
            logger.warning("Notion timeout | method=%s path=%s timeout=%ds", method, path, timeout)
            raise PersistError(f"Time-out na {timeout}s bij verbinden met Notion") from e
        except aiohttp.ClientError as e:
            logger.error("Notion error: %s (%s)", e, type(e).__name__, exc_info=True)
            raise PersistError(f"Netwerkfout bij verbinden met Notion: {type(e).__name__}: {e}") from e

    async def create_page(self, record: ReportRecord) -> str:
        """Create one page for record and return its id."""
        payload = build_page_payload(record, self.config.notion_database_id)
        body = await self._request("POST", "/pages", payload)
        page_id = body.get("id", "")
        logger.info("Notion page created | id=%s title=%s chunks=%d chars=%d",
                    page_id, record.title_label, len(record.body_chunks), len(record.full_body))
        return page_id

    async def persist(self, text: str, run_date: date) -> str:
        """Store text as a new report page dated run_date.

        Returns:
            Id of the created page

        Raises:
            PersistError: If credentials are missing or Notion rejected the page
        """
        return await self.create_page(build_report_record(text, run_date))

    async def check_database(self) -> StoreCheck:
        """Fetch the database schema and compare it with the required columns."""
        body = await self._request("GET", f"/databases/{self.config.notion_database_id}")
        title_parts = body.get("title") or []
        title = "".join(part.get("plain_text", "") for part in title_parts) or "Naamloze database"
        properties = {
            name: prop.get("type", "")
            for name, prop in (body.get("properties") or {}).items()
        }

        check = StoreCheck(database_title=title, properties=properties)
        for name, expected in REQUIRED_PROPERTIES.items():
            if name not in properties:
                check.missing.append(name)
            elif properties[name] != expected:
                check.wrong_type.append(name)

        logger.info("Notion database checked | title=%s missing=%d wrong_type=%d",
                    title, len(check.missing), len(check.wrong_type))
        return check
