"""Remote conference source.

Conference definitions live as YAML files in a GitHub repository, one
directory per category::

    conference/<category>/<name>.yaml

``GitHubConferenceFetcher`` lists every category directory through the
GitHub contents API, downloads each YAML file and parses it into
``ConferenceRecord`` objects. A directory listing that fails means the
source is unavailable and raises ``NetworkError``; a single file that fails
to download or parse is logged and skipped.
"""
import asyncio
import re
from typing import Any, Protocol

import aiohttp
import yaml
from loguru import logger

from ..config import settings
from ..errors import NetworkError
from .models import (
    ConferenceInstance,
    ConferenceRecord,
    TimelineItem,
    clean_date,
    clean_text,
)

logger = logger.bind(module="conftrack.fetcher")

GITHUB_API = "https://api.github.com"

CATEGORY_LABELS = {
    "arch": "Computer Architecture",
    "design": "Circuit Design",
    "device": "Device",
    "eda": "EDA",
}


class DataFetcher(Protocol):
    """Anything that can produce the current set of conference records."""

    async def fetch(self) -> list[ConferenceRecord]:
        """Return all records, or raise NetworkError."""
        ...


# ============== YAML parsing ==============

def _parse_timeline(raw: Any) -> list[TimelineItem]:
    items: list[TimelineItem] = []
    if not isinstance(raw, list):
        return items
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        comment = clean_text(entry.get("comment"))
        abstract = clean_date(entry.get("abstract_deadline"))
        if abstract:
            items.append(TimelineItem(
                name=f"{comment} abstract deadline" if comment else "Abstract deadline",
                deadline=abstract,
            ))
        deadline = clean_date(entry.get("deadline"))
        if deadline:
            items.append(TimelineItem(
                name=f"{comment} paper deadline" if comment else "Paper deadline",
                deadline=deadline,
            ))
    return items


def _parse_instance(raw: dict[str, Any]) -> ConferenceInstance:
    timeline_raw = raw.get("timeline")
    first = timeline_raw[0] if isinstance(timeline_raw, list) and timeline_raw else {}
    if not isinstance(first, dict):
        first = {}

    deadline = clean_date(raw.get("deadline")) or clean_date(first.get("deadline"))
    abstract = clean_date(raw.get("abstract_deadline")) or clean_date(first.get("abstract_deadline"))

    return ConferenceInstance(
        year=int(raw["year"]),
        instance_id=clean_text(raw.get("id")) or None,
        date=clean_date(raw.get("date")),
        place=clean_text(raw.get("place")),
        abstract_deadline=abstract or None,
        deadline=deadline,
        link=clean_text(raw.get("link")) or None,
        timezone=clean_text(raw.get("timezone")) or None,
        timeline=_parse_timeline(timeline_raw),
    )


def _parse_rank(raw: Any) -> dict[str, str]:
    if isinstance(raw, dict):
        return {str(k): clean_text(v) for k, v in raw.items() if clean_text(v)}
    text = clean_text(raw)
    return {"ccf": text} if text else {}


def parse_conference_document(text: str, category: str) -> list[ConferenceRecord]:
    """Parse one YAML document into conference records.

    Args:
        text: Raw YAML content (a list of conference entries)
        category: Directory the file came from, used when ``sub`` is missing

    Returns:
        Parsed records; entries without ``title``/``description`` are ignored
    """
    data = yaml.safe_load(text)
    if not isinstance(data, list):
        return []

    records: list[ConferenceRecord] = []
    for entry in data:
        if not isinstance(entry, dict) or "title" not in entry or "description" not in entry:
            continue

        title = clean_text(entry["title"])
        instances: list[ConferenceInstance] = []
        for raw in entry.get("confs") or []:
            if not isinstance(raw, dict) or raw.get("year") is None:
                continue
            try:
                instances.append(_parse_instance(raw))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed edition of {title}: {e}")

        record_id = (
            clean_text(entry.get("id"))
            or (instances[0].instance_id if instances and instances[0].instance_id else "")
            or re.sub(r"\s+", "", title).lower()
        )
        records.append(ConferenceRecord(
            id=record_id,
            title=title,
            description=clean_text(entry["description"]),
            category=clean_text(entry.get("sub")) or CATEGORY_LABELS.get(category, category),
            rank=_parse_rank(entry.get("rank")),
            dblp_key=clean_text(entry.get("dblp")) or None,
            instances=instances,
        ))
    return records


# ============== GitHub fetcher ==============

class GitHubConferenceFetcher:
    """Fetches conference YAML files from a GitHub repository."""

    def __init__(
        self,
        owner: str | None = None,
        repo: str | None = None,
        branch: str | None = None,
        path: str | None = None,
        categories: list[str] | None = None,
        token: str | None = None,
        timeout_seconds: int | None = None,
        session: Any = None,
    ):
        """Initialize fetcher.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Git ref to read
            path: Directory holding one sub-directory per category
            categories: Category directory names
            token: Optional GitHub token (raises the API rate limit)
            timeout_seconds: Total timeout for one fetch
            session: Existing aiohttp-compatible session to reuse
        """
        self.owner = owner or settings.repo_owner
        self.repo = repo or settings.repo_name
        self.branch = branch or settings.repo_branch
        self.path = (path or settings.repo_path).strip("/")
        self.categories = list(categories) if categories is not None else list(settings.categories)
        self.token = token if token is not None else settings.github_token
        self.timeout_seconds = timeout_seconds or settings.fetch_timeout_seconds
        self._session = session

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch(self) -> list[ConferenceRecord]:
        """Fetch and parse every category."""
        if self._session is not None:
            return await self._fetch_all(self._session)

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            return await self._fetch_all(session)

    async def _fetch_all(self, session: Any) -> list[ConferenceRecord]:
        records: list[ConferenceRecord] = []
        for category in self.categories:
            files = await self._list_directory(session, category)
            logger.debug(f"Category {category}: {len(files)} entries")

            for file_info in files:
                name = str(file_info.get("name", ""))
                url = file_info.get("download_url")
                if not name.endswith((".yaml", ".yml")) or not url:
                    continue
                try:
                    text = await self._download(session, url)
                    parsed = parse_conference_document(text, category)
                except (NetworkError, yaml.YAMLError) as e:
                    logger.warning(f"Skipping remote file {category}/{name}: {e}")
                    continue
                records.extend(parsed)

        logger.info(f"Fetched {len(records)} conferences from {self.owner}/{self.repo}")
        return records

    async def _list_directory(self, session: Any, category: str) -> list[dict[str, Any]]:
        url = f"{GITHUB_API}/repos/{self.owner}/{self.repo}/contents/{self.path}/{category}"
        try:
            async with session.get(url, params={"ref": self.branch}, headers=self._headers()) as resp:
                if resp.status >= 400:
                    raise NetworkError(f"GitHub API responded {resp.status} for {category}")
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Failed to list {category}: {e}") from e

        if not isinstance(data, list):
            raise NetworkError(f"Unexpected directory listing for {category}")
        return [f for f in data if isinstance(f, dict)]

    async def _download(self, session: Any, url: str) -> str:
        try:
            async with session.get(url, headers=self._headers()) as resp:
                if resp.status >= 400:
                    raise NetworkError(f"Download failed with status {resp.status}: {url}")
                return await resp.text()
        except UnicodeDecodeError as e:
            raise NetworkError(f"Undecodable content: {url}: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Download failed: {url}: {e}") from e
