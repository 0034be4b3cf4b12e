"""
Study records returned by the external results endpoint.
"""

from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel


# Resolution order for fields the upstream service names inconsistently
ID_FIELDS = ("study_id", "id", "pmid")
CONTRAST_FIELDS = ("contrast", "contrasts", "n_contrasts", "nContrasts")

PUBMED_URL = "https://pubmed.ncbi.nlm.nih.gov/{}/"


def first_present(payload: Dict[str, Any], fields) -> Any:
    """Return the first field value that is present and not null."""
    for field in fields:
        value = payload.get(field)
        if value is not None:
            return value
    return None


def display_text(value: Any) -> Optional[str]:
    """Render a display field as text; lists are comma-joined."""
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or None
    return str(value)


def display_scalar(value: Any) -> Optional[Union[int, float, str]]:
    """Keep numbers and strings as they are, stringify anything else."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return value
    return str(value)


class StudyRecord(BaseModel):
    """A single study row."""
    title: str = ""
    authors: Optional[str] = None
    journal: Optional[str] = None
    year: Optional[Union[int, float, str]] = None
    study_id: Optional[str] = None
    contrast_count: Optional[Union[int, float, str]] = None

    @property
    def pubmed_url(self) -> Optional[str]:
        if not self.study_id:
            return None
        return PUBMED_URL.format(quote(self.study_id, safe=""))

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StudyRecord":
        """Build a record from one entry of the upstream ``results`` array."""
        study_id = first_present(payload, ID_FIELDS)

        return cls(
            title=display_text(payload.get("title")) or "",
            authors=display_text(payload.get("authors")),
            journal=display_text(payload.get("journal")),
            year=display_scalar(payload.get("year")) or None,
            study_id=str(study_id) if study_id not in (None, "") else None,
            contrast_count=display_scalar(first_present(payload, CONTRAST_FIELDS)),
        )


class StudyResult(BaseModel):
    """Response shape for one study row."""
    title: str
    authors: Optional[str]
    journal: Optional[str]
    year: Optional[Union[int, float, str]]
    study_id: Optional[str]
    contrast_count: Optional[Union[int, float, str]]
    pubmed_url: Optional[str]

    @classmethod
    def from_record(cls, record: StudyRecord) -> "StudyResult":
        return cls(pubmed_url=record.pubmed_url, **record.model_dump())


class StudiesPage(BaseModel):
    """One page of sorted study results plus the empty-state status."""
    query: str
    status: str
    message: Optional[str] = None
    results: List[StudyResult]
    total: int
    page: int
    total_pages: int
    page_size: int
    sort: str
    direction: str
