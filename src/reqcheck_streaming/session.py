"""One feasibility analysis, from request to final render."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import time
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from reqcheck_core.exceptions import ReqCheckError
from reqcheck_streaming.assembler import IncrementalAssembler
from reqcheck_streaming.composer import compose
from reqcheck_streaming.finalizer import FinalDocument, finalize
from reqcheck_streaming.observability import bind_analysis_context, clear_analysis_context
from reqcheck_streaming.projector import RenderTracker, SectionView

if TYPE_CHECKING:
    from reqcheck_core.config.settings import Settings
    from reqcheck_core.models.report import ProtocolVersion
    from reqcheck_core.models.request import StreamRequest
    from reqcheck_streaming.client import FragmentSource
    from reqcheck_streaming.document import PartialDocument

logger = structlog.get_logger()


@dataclass(frozen=True)
class RenderUpdate:
    """Section views after one fragment, or after finalization."""

    analysis_id: str
    sequence: int
    sections: tuple[SectionView, ...]
    document: PartialDocument | None
    final: FinalDocument | None = None

    @property
    def is_final(self) -> bool:
        return self.final is not None


UpdateHandler = Callable[[RenderUpdate], Awaitable[None] | None]


class FeasibilityAnalysis:
    """Drive compose, stream, assemble, project and finalize for a request."""

    def __init__(
        self,
        settings: Settings,
        streamer: FragmentSource,
        protocol: ProtocolVersion | None = None,
    ) -> None:
        """Initialize with settings, a fragment source and an optional protocol override."""
        self.settings = settings
        self.streamer = streamer
        self.protocol: ProtocolVersion = protocol or settings.protocol_version

    async def run(
        self, request: StreamRequest, analysis_id: str | None = None
    ) -> AsyncGenerator[RenderUpdate, None]:
        """Yield one RenderUpdate per fragment, then one final update.

        The next fragment is not pulled until the consumer has taken the
        previous update. Any ReqCheckError propagates after the updates
        already yielded; no final update follows it.
        """
        analysis_id = analysis_id or uuid.uuid4().hex[:12]
        protocol = self.protocol
        assembler = IncrementalAssembler()
        tracker = RenderTracker(protocol)
        start = time.monotonic()
        sequence = 0

        bind_analysis_context(analysis_id, protocol)
        try:
            prompt = compose(request, protocol)
            logger.info(
                "analysis_start",
                locations=len(request.locations),
                prompt_version=prompt.prompt_version,
            )
            fragments = self.streamer.stream(prompt)
            try:
                async with contextlib.aclosing(fragments):
                    async for fragment in fragments:
                        document = assembler.feed(fragment)
                        logger.debug(
                            "stream_fragment",
                            size=len(fragment),
                            buffer_length=len(assembler.text),
                        )
                        sequence += 1
                        yield RenderUpdate(
                            analysis_id=analysis_id,
                            sequence=sequence,
                            sections=tuple(tracker.update(document, streaming=True)),
                            document=document,
                        )
            finally:
                assembler.close()

            final = finalize(assembler.text, protocol)
            sections = tuple(tracker.update(final.document, streaming=False))
            logger.info(
                "analysis_complete",
                fragments=len(assembler.fragments),
                parse_misses=assembler.parse_misses,
                sections_ready=sum(1 for view in sections if view.ready),
                duration_seconds=round(time.monotonic() - start, 2),
            )
            yield RenderUpdate(
                analysis_id=analysis_id,
                sequence=sequence + 1,
                sections=sections,
                document=final.document,
                final=final,
            )
        except ReqCheckError as e:
            logger.error(
                "analysis_failed",
                error_type=type(e).__name__,
                error=str(e),
                fragments=len(assembler.fragments),
            )
            raise
        finally:
            clear_analysis_context()


class AnalysisController:
    """Keep at most one analysis in flight.

    Submitting a new request cancels the running one and waits for its
    stream to close before the next one starts.
    """

    def __init__(self, analysis: FeasibilityAnalysis) -> None:
        self.analysis = analysis
        self._task: asyncio.Task[FinalDocument | None] | None = None

    @property
    def active(self) -> bool:
        """Whether an analysis is still running."""
        return self._task is not None and not self._task.done()

    async def submit(
        self, request: StreamRequest, on_update: UpdateHandler
    ) -> asyncio.Task[FinalDocument | None]:
        """Supersede any running analysis and start a new one."""
        await self.cancel()
        self._task = asyncio.create_task(self._consume(request, on_update))
        return self._task

    async def cancel(self) -> None:
        """Cancel the running analysis, if any, and wait for teardown."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        logger.info("analysis_superseded")
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _consume(
        self, request: StreamRequest, on_update: UpdateHandler
    ) -> FinalDocument | None:
        final: FinalDocument | None = None
        async with contextlib.aclosing(self.analysis.run(request)) as updates:
            async for update in updates:
                result = on_update(update)
                if inspect.isawaitable(result):
                    await result
                if update.final is not None:
                    final = update.final
        return final
