"""Batch summarizer: incremental map-reduce over a folder panel's files."""

from panelflow.application.summarizer.dto import (
    MapReduceResult,
    MapReduceStats,
    SummarizeRequest,
)
from panelflow.application.summarizer.map_reduce import MapReduceSummarizer

__all__ = [
    "MapReduceResult",
    "MapReduceStats",
    "MapReduceSummarizer",
    "SummarizeRequest",
]
