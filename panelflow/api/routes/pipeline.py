"""Pipeline API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from panelflow.api.dependencies import get_output_store, get_pipeline_use_case, limiter
from panelflow.application.pipeline.dto import (
    NodeCompletedRequest,
    NodeCompletedResponse,
    PipelineRunResponse,
    RunPipelineRequest,
    StopRunResponse,
)
from panelflow.application.pipeline.output_store import PanelOutputStore
from panelflow.application.pipeline.use_case import PipelineUseCase
from panelflow.domain.errors import RunAlreadyActiveError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.post("/runs", response_model=None)
@limiter.limit("30/minute")
async def run_pipeline(
    request: Request,
    run_request: RunPipelineRequest,
    use_case: PipelineUseCase = Depends(get_pipeline_use_case),
    stream: bool = False,
) -> PipelineRunResponse | EventSourceResponse:
    """Run a pipeline snapshot. Use stream=true for SSE step events."""
    if stream:
        # Streams claim the id lazily, so reject a known duplicate before the 200
        if run_request.run_id in use_case.active_runs:
            raise HTTPException(status_code=409, detail=f"Run already active: {run_request.run_id}")
        return _stream_response(run_request, use_case)
    try:
        return await use_case.execute(run_request)
    except RunAlreadyActiveError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("Pipeline execution failed")
        raise HTTPException(status_code=500, detail="Pipeline execution failed")


def _stream_response(
    run_request: RunPipelineRequest,
    use_case: PipelineUseCase,
) -> EventSourceResponse:
    async def event_generator():
        try:
            async for evt in use_case.execute_stream(run_request):
                yield {"event": evt.event_type, "data": evt.model_dump_json()}
        except RunAlreadyActiveError as e:
            yield {"event": "error", "data": str(e)}
        except Exception:
            logger.exception("Pipeline stream failed")
            yield {"event": "error", "data": "Stream failed"}
        yield {"event": "close", "data": ""}

    return EventSourceResponse(event_generator())


@router.post("/runs/{run_id}/stop")
@limiter.limit("60/minute")
async def stop_pipeline(
    request: Request,
    run_id: str,
    use_case: PipelineUseCase = Depends(get_pipeline_use_case),
) -> StopRunResponse:
    """Cooperatively stop an active run."""
    if not use_case.stop(run_id):
        raise HTTPException(status_code=404, detail=f"Run not active: {run_id}")
    return StopRunResponse(run_id=run_id, stopped=True)


@router.post("/nodes/{node_id}/completed")
@limiter.limit("60/minute")
async def node_completed(
    request: Request,
    node_id: int,
    body: NodeCompletedRequest,
    use_case: PipelineUseCase = Depends(get_pipeline_use_case),
) -> NodeCompletedResponse:
    """Report a single-node completion; ready auto-chain targets run once."""
    return await use_case.notify_completed(node_id, body)


@router.get("/outputs")
async def list_outputs(store: PanelOutputStore = Depends(get_output_store)) -> dict[int, str]:
    return store.snapshot()


@router.delete("/outputs")
async def clear_outputs(
    node_id: int | None = None,
    store: PanelOutputStore = Depends(get_output_store),
) -> dict:
    store.clear(node_id)
    return {"cleared": True, "node_id": node_id}
