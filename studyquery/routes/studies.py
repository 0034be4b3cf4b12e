"""
Study results endpoint.
Looks up the committed query upstream and returns a sorted page of studies.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from studyquery.limits import limiter
from studyquery.models.study import StudiesPage
from studyquery.services.studies import StudiesService

router = APIRouter()

_service = None


def get_studies_service() -> StudiesService:
    """Shared service built from environment settings on first use."""
    global _service
    if _service is None:
        _service = StudiesService.from_settings()
    return _service


@router.get("", response_model=StudiesPage)
@limiter.limit("60/minute")
def list_studies(
    request: Request,
    q: str = Query("", description="Committed boolean query, e.g. [-22,-4,18] NOT emotion"),
    sort: str = Query("year", description="Sort key: year, journal, title or authors"),
    direction: str = Query("desc", description="Sort direction: asc or desc"),
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    service: StudiesService = Depends(get_studies_service)
):
    """
    List studies for a query.

    An empty query never reaches the upstream service and reports the
    `empty_query` status. Upstream failures, including 5xx responses, are
    reported as `no_data` rather than as an error.
    """
    try:
        return service.search(q, sort=sort, direction=direction, page=page)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
