"""Summarizer DTOs."""

from pydantic import BaseModel, Field

from panelflow.domain.entities.summary_cache import SourceFile


class SummarizeRequest(BaseModel):
    """Summarize the current file set of one folder panel."""

    agent_id: str = Field(..., min_length=1)
    workspace_id: str = "default"
    source_node_id: int
    folder_path: str = ""
    files: list[SourceFile] = []


class MapReduceStats(BaseModel):
    total_files: int = 0
    cached_files: int = 0
    summarized_files: int = 0
    map_call_count: int = 0  # files mapped
    map_chunk_count: int = 0  # agent calls in the map phase
    reduce_call_count: int = 0


class MapReduceResult(BaseModel):
    summary: str
    stats: MapReduceStats
