"""Summary API routes - map-reduce summarization and cache management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from panelflow.api.dependencies import get_summarizer, get_summary_cache_store, limiter
from panelflow.application.summarizer import MapReduceResult, MapReduceSummarizer, SummarizeRequest
from panelflow.domain.errors import SummarizationError
from panelflow.domain.ports.summary_cache import SummaryCacheStorePort

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/summaries", tags=["summaries"])


@router.post("")
@limiter.limit("10/minute")
async def summarize(
    request: Request,
    summarize_request: SummarizeRequest,
    summarizer: MapReduceSummarizer = Depends(get_summarizer),
) -> MapReduceResult:
    """Summarize a file set, reusing cached per-file summaries."""
    try:
        return await summarizer.summarize(summarize_request)
    except SummarizationError as e:
        logger.warning("Summarization failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


@router.delete("/{workspace_id}/{node_id}")
async def clear_summary(
    workspace_id: str,
    node_id: int,
    store: SummaryCacheStorePort = Depends(get_summary_cache_store),
) -> dict:
    store.clear(workspace_id, node_id)
    return {"cleared": 1, "workspace_id": workspace_id, "node_id": node_id}


@router.delete("/{workspace_id}")
async def clear_workspace_summaries(
    workspace_id: str,
    store: SummaryCacheStorePort = Depends(get_summary_cache_store),
) -> dict:
    return {"cleared": store.clear_all(workspace_id), "workspace_id": workspace_id}
