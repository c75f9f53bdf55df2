"""Map-reduce summarizer with a per-file content diff cache.

Map: changed files are chunked and summarized in small parallel batches with a
pause between batches. A failed chunk contributes an empty summary.
Reduce: per-file summaries are merged, hierarchically when there are more than
reduce_batch_size of them. A failed reduce call fails the whole summary.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from panelflow.application.shared.agent_calls import call_agent
from panelflow.application.summarizer.dto import (
    MapReduceResult,
    MapReduceStats,
    SummarizeRequest,
)
from panelflow.application.summarizer.prompts import render_map_prompt, render_reduce_prompt
from panelflow.domain.entities.cancellation import CancellationToken
from panelflow.domain.entities.summary_cache import (
    CacheDiff,
    ChangedFile,
    FileChunk,
    FileSummaryEntry,
    SummaryCache,
)
from panelflow.domain.errors import AgentCallError, PipelineStoppedError, SummarizationError
from panelflow.domain.ports.agent import AgentInvokerPort
from panelflow.domain.ports.config import SummarizerConfig
from panelflow.domain.ports.summary_cache import SummaryCacheStorePort
from panelflow.domain.services.chunker import chunk_file_content
from panelflow.domain.services.content_diff import diff_against_cache, hash_content
from panelflow.domain.services.retry_policy import RateLimitRetryPolicy, SleepFn

logger = logging.getLogger(__name__)

# phase ("map" | "reduce"), completed, total
ProgressFn = Callable[[str, int, int], None]


def _check_cancelled(token: CancellationToken) -> None:
    if token.cancelled:
        raise PipelineStoppedError(token.reason or "Summarization stopped.")


class MapReduceSummarizer:
    """Summarizes a folder panel's files, re-summarizing only what changed."""

    def __init__(
        self,
        invoker: AgentInvokerPort,
        cache_store: SummaryCacheStorePort,
        settings: SummarizerConfig | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._invoker = invoker
        self._cache_store = cache_store
        self._settings = settings or SummarizerConfig()
        self._sleep = sleep
        self._clock = clock
        self._rate_limit_policy = RateLimitRetryPolicy(
            max_retries=self._settings.max_rate_limit_retries,
            step_seconds=self._settings.backoff_step_seconds,
            max_wait_seconds=self._settings.backoff_max_seconds,
        )

    async def summarize(
        self,
        request: SummarizeRequest,
        token: CancellationToken | None = None,
        on_progress: ProgressFn | None = None,
    ) -> MapReduceResult:
        """Summarize request.files, reusing cached per-file summaries.

        Raises:
            SummarizationError: A reduce call failed.
            PipelineStoppedError: token was cancelled.

        """
        token = token or CancellationToken()
        cache = self._cache_store.load(request.workspace_id, request.source_node_id)
        diff = diff_against_cache(cache, request.files, request.folder_path)
        stats = MapReduceStats(
            total_files=len(diff.order),
            cached_files=len(diff.unchanged),
            summarized_files=len(diff.changed),
        )
        logger.info(
            "Summary diff for panel #%d: %d changed, %d cached, %d removed",
            request.source_node_id,
            len(diff.changed),
            len(diff.unchanged),
            len(diff.removed),
        )

        if diff.is_full_hit and cache is not None and cache.reduced_summary:
            return MapReduceResult(summary=cache.reduced_summary, stats=stats)

        new_summaries: dict[str, str] = {}
        if diff.changed:
            new_summaries, stats.map_chunk_count = await self._map_phase(
                request.agent_id, diff.changed, token, on_progress
            )
            stats.map_call_count = len(new_summaries)

        cached_summaries = {item.relative_path: item.summary for item in diff.unchanged}
        summaries: dict[str, str] = {}
        for rel in diff.order:
            if rel in new_summaries:
                summaries[rel] = new_summaries[rel]
            else:
                summaries[rel] = cached_summaries.get(rel, "")

        summary = ""
        if summaries:
            summary, stats.reduce_call_count = await self._reduce_phase(
                request.agent_id, summaries, token, on_progress
            )

        self._save_cache(request, cache, diff, new_summaries, summary)
        return MapReduceResult(summary=summary, stats=stats)

    async def _map_phase(
        self,
        agent_id: str,
        changed: list[ChangedFile],
        token: CancellationToken,
        on_progress: ProgressFn | None,
    ) -> tuple[dict[str, str], int]:
        chunks: list[FileChunk] = []
        for file in changed:
            chunks.extend(
                chunk_file_content(file.content, file.relative_path, self._settings.chunk_bytes)
            )

        per_file: dict[str, list[str]] = {}
        for chunk in chunks:
            per_file.setdefault(chunk.relative_path, [""] * chunk.total_chunks)

        batch_size = self._settings.concurrency
        total = len(chunks)
        completed = 0
        for start in range(0, total, batch_size):
            _check_cancelled(token)
            if on_progress:
                on_progress("map", completed, total)

            batch = chunks[start:start + batch_size]
            results = await asyncio.gather(
                *(self._summarize_chunk(agent_id, chunk, token) for chunk in batch),
                return_exceptions=True,
            )
            for chunk, result in zip(batch, results):
                if isinstance(result, PipelineStoppedError):
                    raise result
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    logger.error("Failed to summarize %s: %s", chunk.label, result)
                    result = ""
                per_file[chunk.relative_path][chunk.chunk_index] = result
                completed += 1

            if start + batch_size < total:
                await self._sleep(self._settings.batch_delay_ms / 1000)

        if on_progress:
            on_progress("map", completed, total)
        summaries = {
            path: "\n".join(part for part in parts if part) for path, parts in per_file.items()
        }
        return summaries, total

    async def _summarize_chunk(
        self,
        agent_id: str,
        chunk: FileChunk,
        token: CancellationToken,
    ) -> str:
        prompt = render_map_prompt(chunk.label, chunk.content)
        return await self._call_with_backoff(agent_id, prompt, token, chunk.label)

    async def _call_with_backoff(
        self,
        agent_id: str,
        prompt: str,
        token: CancellationToken,
        label: str,
    ) -> str:
        policy = self._rate_limit_policy

        def on_retry(attempt: int, exc: BaseException | None) -> None:
            logger.warning(
                "Rate limited on %s, retry %d/%d in %.0fs",
                label,
                attempt,
                policy.max_retries,
                policy.wait_for(attempt),
            )

        output = ""
        async for attempt in policy.retrying(sleep=self._sleep, on_retry=on_retry):
            with attempt:
                _check_cancelled(token)
                output = await call_agent(self._invoker, agent_id, prompt)
        return output

    async def _reduce_phase(
        self,
        agent_id: str,
        summaries: dict[str, str],
        token: CancellationToken,
        on_progress: ProgressFn | None,
    ) -> tuple[str, int]:
        sections = [f"[{path}]\n{summary}" for path, summary in summaries.items()]
        ceiling = self._settings.reduce_batch_size
        calls = 0

        while len(sections) > ceiling:
            reduced: list[str] = []
            for start in range(0, len(sections), ceiling):
                _check_cancelled(token)
                reduced.append(await self._reduce(agent_id, sections[start:start + ceiling], token))
                calls += 1
            logger.info("Reduced %d sections to %d", len(sections), len(reduced))
            sections = reduced

        _check_cancelled(token)
        if on_progress:
            on_progress("reduce", 0, 1)
        summary = await self._reduce(agent_id, sections, token)
        calls += 1
        if on_progress:
            on_progress("reduce", 1, 1)
        return summary, calls

    async def _reduce(self, agent_id: str, sections: list[str], token: CancellationToken) -> str:
        try:
            return await self._call_with_backoff(
                agent_id, render_reduce_prompt(sections), token, "reduce"
            )
        except AgentCallError as e:
            raise SummarizationError(f"Reduce phase failed: {e}") from e

    def _save_cache(
        self,
        request: SummarizeRequest,
        cache: SummaryCache | None,
        diff: CacheDiff,
        new_summaries: dict[str, str],
        summary: str,
    ) -> None:
        now = int(self._clock() * 1000)
        files: dict[str, FileSummaryEntry] = {}
        for item in diff.unchanged:
            existing = cache.files.get(item.relative_path) if cache else None
            if existing is not None:
                files[item.relative_path] = existing
        for file in diff.changed:
            files[file.relative_path] = FileSummaryEntry(
                content_hash=hash_content(file.content),
                summary=new_summaries.get(file.relative_path, ""),
                summarized_at=now,
            )
        self._cache_store.save(
            request.workspace_id,
            request.source_node_id,
            SummaryCache(
                folder_path=request.folder_path,
                files=files,
                reduced_summary=summary,
                reduced_at=now,
            ),
        )
