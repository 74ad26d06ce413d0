"""Search API routes."""

from fastapi import APIRouter, Query

from dashsnap.api.deps import CallerDep, SearchIndexDep
from dashsnap.api.schemas import SearchResponse, SearchResultResponse
from dashsnap.search import DEFAULT_SEARCH_LIMIT

router = APIRouter(tags=["Search"])


@router.get("/search", response_model=SearchResponse)
async def search(
    caller: CallerDep,
    index: SearchIndexDep,
    query: str = Query(..., min_length=1, max_length=500),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=200),
) -> SearchResponse:
    """Search the caller's organization's indexed content."""
    results = await index.search(query, caller.org_id, limit=limit)
    return SearchResponse(
        query=query,
        results=[SearchResultResponse.from_result(r) for r in results],
    )
