"""
Studios API - studio catalog indexing and fuzzy search

Endpoints:
    POST /studios/index - Replace the search index with a new catalog
    GET /studios/search - Typo-tolerant search with faceted filters
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from app.schemas import Region, RoleCategory, SizeBucket
from app.services.search_index import StudioFilters, get_search_service

router = APIRouter()


class IndexStudiosRequest(BaseModel):
    """Full studio catalog; replaces whatever was indexed before."""
    studios: List[Dict[str, Any]] = Field(default_factory=list)
    categories: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description="Optional category -> studio ids taxonomy"
    )


class IndexStudiosResponse(BaseModel):
    indexed: int


class StudioSearchResult(BaseModel):
    id: str
    name: str
    score: int
    distance: int
    match_type: str
    region: str
    size_bucket: str
    tech_tags: List[str]
    role_categories: List[str]


class StudioSearchResponse(BaseModel):
    results: List[StudioSearchResult]
    total: int
    query: str


@router.post("/index", response_model=IndexStudiosResponse)
async def index_studios(request: IndexStudiosRequest):
    """Normalize and index a studio catalog."""
    indexed = get_search_service().rebuild(request.studios, request.categories)
    return IndexStudiosResponse(indexed=indexed)


@router.get("/search", response_model=StudioSearchResponse)
async def search_studios(
    q: str = Query("", description="Free-text query, typos tolerated"),
    region: List[Region] = Query(default=[]),
    size: List[SizeBucket] = Query(default=[]),
    tech: List[str] = Query(default=[]),
    role: List[RoleCategory] = Query(default=[]),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Search indexed studios.

    A blank query combined with filters lists every matching studio by name.
    """
    filters = StudioFilters(
        regions=tuple(region),
        size_buckets=tuple(size),
        tech_tags=tuple(tech),
        role_categories=tuple(role),
    )
    results = get_search_service().search(q, filters, limit)

    return StudioSearchResponse(
        results=[r.to_dict() for r in results],
        total=len(results),
        query=q,
    )
