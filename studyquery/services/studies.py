"""
Study results collaborator.

Looks up the committed query on the external results service and prepares
sorted, paginated rows for display. Lookup failures of any kind are reported
as an empty result set so the listing falls back to its empty state.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from studyquery.config import Settings, get_settings
from studyquery.models.study import StudiesPage, StudyRecord, StudyResult

logger = logging.getLogger(__name__)

SORT_KEYS = ("year", "journal", "title", "authors")
DIRECTIONS = ("asc", "desc")

EMPTY_QUERY_MESSAGE = "Enter a query above to display study results"
NO_DATA_MESSAGE = "No data"


def encode_query(query: str) -> str:
    # Same unreserved set as JavaScript's encodeURIComponent
    return quote(query, safe="!*'()")


def parse_results(data: Any) -> List[StudyRecord]:
    """Extract study records from a decoded response body."""
    results = data.get("results") if isinstance(data, dict) else None
    if not isinstance(results, list):
        return []

    records = []
    for item in results:
        if not isinstance(item, dict):
            continue
        try:
            records.append(StudyRecord.from_payload(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed study record: {e}")
    return records


class StudiesClient:
    """Read-only client for ``GET {base}/query/{query}/studies``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_url(self, query: str) -> str:
        return f"{self.base_url}/query/{encode_query(query)}/studies"

    def fetch(self, query: str) -> List[StudyRecord]:
        """
        Fetch studies matching ``query``.

        No request is made for an empty query. Transport errors, non-2xx
        statuses and unusable bodies all give an empty list.
        """
        if not query or not query.strip():
            return []

        url = self.build_url(query)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Study lookup failed for {query!r}: {e}")
            return []

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not 200 <= response.status_code < 300:
            error = data.get("error") if isinstance(data, dict) else None
            logger.warning(f"Study lookup for {query!r} returned HTTP {response.status_code}: {error or response.reason}")
            return []

        return parse_results(data)


def _year_key(record: StudyRecord) -> float:
    try:
        return float(record.year or 0)
    except (TypeError, ValueError):
        return 0.0


def _text_key(value: Any):
    text = str(value or "")
    return (text.casefold(), text)


@dataclass(frozen=True)
class ResultsView:
    """Sort and paging state for the results listing."""
    sort_key: str = "year"
    direction: str = "desc"
    page: int = 1
    page_size: int = 20

    def change_sort(self, key: str) -> "ResultsView":
        """Toggle direction on the active key, otherwise sort ascending by ``key``."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}. Must be one of {', '.join(SORT_KEYS)}")
        if key == self.sort_key:
            return replace(self, direction="asc" if self.direction == "desc" else "desc")
        return replace(self, sort_key=key, direction="asc")

    def go_to(self, page: int, total: int) -> "ResultsView":
        return replace(self, page=min(max(1, page), self.total_pages(total)))

    def total_pages(self, total: int) -> int:
        return max(1, math.ceil(total / self.page_size))

    def sort(self, records: List[StudyRecord]) -> List[StudyRecord]:
        reverse = self.direction == "desc"
        if self.sort_key == "year":
            return sorted(records, key=_year_key, reverse=reverse)
        return sorted(records, key=lambda r: _text_key(getattr(r, self.sort_key)), reverse=reverse)

    def page_rows(self, records: List[StudyRecord]) -> List[StudyRecord]:
        start = (self.page - 1) * self.page_size
        return records[start:start + self.page_size]


def results_status(query: str, records: List[StudyRecord]) -> str:
    if not query or not query.strip():
        return "empty_query"
    if not records:
        return "no_data"
    return "results"


STATUS_MESSAGES = {
    "empty_query": EMPTY_QUERY_MESSAGE,
    "no_data": NO_DATA_MESSAGE,
    "results": None,
}


class StudiesService:
    """Fetches, sorts and pages study results for a committed query."""

    def __init__(self, client: StudiesClient, page_size: int = 20):
        self.client = client
        self.page_size = page_size

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "StudiesService":
        settings = settings or get_settings()
        client = StudiesClient(settings.studies_api_base, timeout=settings.studies_timeout)
        return cls(client, page_size=settings.page_size)

    def search(
        self,
        query: str,
        sort: str = "year",
        direction: str = "desc",
        page: int = 1
    ) -> StudiesPage:
        if sort not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort}. Must be one of {', '.join(SORT_KEYS)}")
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction}. Must be 'asc' or 'desc'")

        records = self.client.fetch(query)
        view = ResultsView(sort_key=sort, direction=direction, page_size=self.page_size)
        view = view.go_to(page, len(records))
        rows = view.page_rows(view.sort(records))
        status = results_status(query, records)

        return StudiesPage(
            query=query,
            status=status,
            message=STATUS_MESSAGES[status],
            results=[StudyResult.from_record(r) for r in rows],
            total=len(records),
            page=view.page,
            total_pages=view.total_pages(len(records)),
            page_size=view.page_size,
            sort=view.sort_key,
            direction=view.direction,
        )
