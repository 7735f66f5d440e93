"""
Single-flight coordinator for report downloads.

One download runs at a time through the stages::

    IDLE -> AWAITING_LANGUAGE_CHOICE -> (REUSING | REGENERATING) -> RENDERING
         -> RASTERIZING -> ASSEMBLING -> SAVING -> IDLE

with ERRORED reachable from every busy stage. Whatever the outcome (artifact,
typed failure or cancellation) the coordinator ends back in IDLE with the
download request and every intermediate artifact released.

A language prompt left unanswered for longer than ``prompt_timeout`` seconds is
discarded the next time the coordinator is consulted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol
from uuid import uuid4

from bankassist.schemas import (
    AnalysisReport,
    ExportStatus,
    RegenerationInputs,
    ReportLanguage,
    ReportType,
)
from bankassist.services.exceptions import (
    DownloadRequestNotFoundError,
    ExportCancelled,
    ExportFailure,
    ExportInProgressError,
    RasterizationFailed,
    ReportNotFoundError,
)
from bankassist.services.file_naming import FilenameStrategy, build_export_filename
from bankassist.services.pagination import DocumentAssembler
from bankassist.services.rasterizer import Rasterizer
from bankassist.services.rendering import ReportRenderer
from bankassist.services.report_store import ReportStore

logger = logging.getLogger(__name__)


class ExportState(str, Enum):
    IDLE = "idle"
    AWAITING_LANGUAGE_CHOICE = "awaiting_language_choice"
    REUSING = "reusing"
    REGENERATING = "regenerating"
    RENDERING = "rendering"
    RASTERIZING = "rasterizing"
    ASSEMBLING = "assembling"
    SAVING = "saving"
    ERRORED = "errored"


class Regenerator(Protocol):
    async def regenerate(
        self,
        report_type: ReportType,
        inputs: RegenerationInputs,
        language: ReportLanguage,
    ) -> AnalysisReport:
        ...


@dataclass(frozen=True, slots=True)
class DownloadRequest:
    """Private snapshot of what the user asked to download.

    Later changes to the report store do not affect an in-flight export.
    """

    request_id: str
    handle: str
    report_type: ReportType
    current_report: AnalysisReport
    current_language: ReportLanguage
    regeneration_inputs: RegenerationInputs


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    filename: str
    content: bytes
    language: ReportLanguage
    page_count: int
    media_type: str = "application/pdf"


class ExportCoordinator:
    """Drive one report export at a time from request to saved document."""

    def __init__(
        self,
        *,
        store: ReportStore,
        regenerator: Regenerator,
        renderer: ReportRenderer,
        rasterizer: Rasterizer,
        assembler: DocumentAssembler,
        settle_delay: float = 0.5,
        prompt_timeout: Optional[float] = 300.0,
        filename_strategy: FilenameStrategy = build_export_filename,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._regenerator = regenerator
        self._renderer = renderer
        self._rasterizer = rasterizer
        self._assembler = assembler
        self._settle_delay = settle_delay
        self._filename_strategy = filename_strategy
        self._prompt_timeout = prompt_timeout
        self._clock = clock

        self._state = ExportState.IDLE
        self._active: Optional[DownloadRequest] = None
        self._task: Optional[asyncio.Task[ExportArtifact]] = None
        self._cancel_requested = False
        self._prompt_opened_at = 0.0
        self._history: List[ExportState] = []

    @property
    def state(self) -> ExportState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is not ExportState.IDLE

    @property
    def active_request(self) -> Optional[DownloadRequest]:
        return self._active

    @property
    def history(self) -> tuple[ExportState, ...]:
        """States visited by the most recent download, in order."""
        return tuple(self._history)

    def status(self) -> ExportStatus:
        self._expire_abandoned_prompt()
        return ExportStatus(
            state=self._state.value,
            busy=self.busy,
            request_id=self._active.request_id if self._active else None,
            handle=self._active.handle if self._active else None,
        )

    def request_download(self, handle: str) -> DownloadRequest:
        """Open the language prompt for ``handle``.

        Raises:
            ExportInProgressError: another download is active; it is left as is.
            ReportNotFoundError: the handle is unknown.
        """
        self._expire_abandoned_prompt()
        if self.busy:
            raise ExportInProgressError(
                "A report download is already in progress; wait for it to finish."
            )
        stored = self._store.get(handle)
        inputs = self._store.inputs_for(handle)
        if stored is None or inputs is None:
            raise ReportNotFoundError(f"Report {handle} not found")

        request = DownloadRequest(
            request_id=uuid4().hex,
            handle=handle,
            report_type=inputs.report_type,
            current_report=stored.report,
            current_language=stored.language,
            regeneration_inputs=inputs,
        )
        self._history = []
        self._active = request
        self._cancel_requested = False
        self._prompt_opened_at = self._clock()
        self._transition(ExportState.AWAITING_LANGUAGE_CHOICE)
        return request

    async def choose_language(
        self, request_id: str, language: ReportLanguage
    ) -> ExportArtifact:
        """Confirm the target language and run the export to completion.

        Raises:
            DownloadRequestNotFoundError: ``request_id`` is not the active request.
            ExportInProgressError: the language was already chosen.
            RegenerationFailed, RasterizationFailed, EmptyContent: the export
                failed; nothing was produced.
            ExportCancelled: the dialog was discarded while the export ran.
        """
        self._expire_abandoned_prompt()
        request = self._require_active(request_id)
        if self._task is not None or self._state is not ExportState.AWAITING_LANGUAGE_CHOICE:
            raise ExportInProgressError("The export for this request is already running.")

        logger.info(
            "Exporting %s report %s in %s (stored language %s)",
            request.report_type.value,
            request.handle,
            language.value,
            request.current_language.value,
        )
        self._task = asyncio.ensure_future(self._run(request, language))
        try:
            artifact = await self._task
        except asyncio.CancelledError:
            if self._cancel_requested:
                logger.info("Export of report %s cancelled", request.handle)
                raise ExportCancelled("Export cancelled before completion") from None
            raise
        finally:
            self._reset(request)

        logger.info(
            "Exported %s (%d page(s), %d bytes)",
            artifact.filename,
            artifact.page_count,
            len(artifact.content),
        )
        return artifact

    def cancel(self, request_id: Optional[str] = None) -> bool:
        """Discard the active download, if any; returns whether one was active.

        A running pipeline is cancelled at its next suspension point and still
        cleans up before ``choose_language`` returns. A pipeline that already
        finished releases the coordinator at once; its caller still receives
        the artifact.
        """
        active = self._active
        if active is None:
            return False
        if request_id is not None and active.request_id != request_id:
            return False
        if self._task is not None and not self._task.done():
            self._cancel_requested = True
            self._task.cancel()
            return True
        self._reset(active)
        return True

    def _expire_abandoned_prompt(self) -> None:
        active = self._active
        if (
            active is None
            or self._prompt_timeout is None
            or self._state is not ExportState.AWAITING_LANGUAGE_CHOICE
        ):
            return
        if self._clock() - self._prompt_opened_at >= self._prompt_timeout:
            logger.info(
                "Download request %s for report %s expired without a language choice",
                active.request_id,
                active.handle,
            )
            self._reset(active)

    async def _run(self, request: DownloadRequest, language: ReportLanguage) -> ExportArtifact:
        try:
            if language == request.current_language:
                self._transition(ExportState.REUSING)
                report = request.current_report
            else:
                self._transition(ExportState.REGENERATING)
                report = await self._regenerator.regenerate(
                    request.report_type, request.regeneration_inputs, language
                )
                self._store.put(request.handle, report, language)

            self._transition(ExportState.RENDERING)
            try:
                region = self._renderer.render(report, language)
            except (OSError, ValueError) as exc:
                raise RasterizationFailed(f"Unable to lay out report: {exc}") from exc
            # Layout completion is not observable; wait a bounded time instead.
            await asyncio.sleep(self._settle_delay)

            self._transition(ExportState.RASTERIZING)
            snapshot = await self._rasterizer.capture(region)

            self._transition(ExportState.ASSEMBLING)
            document = self._assembler.assemble(snapshot)

            self._transition(ExportState.SAVING)
            return ExportArtifact(
                filename=self._filename_strategy(report, language),
                content=document.content,
                language=language,
                page_count=document.page_count,
            )
        except ExportFailure as exc:
            exc.with_language(language)
            self._transition(ExportState.ERRORED)
            logger.warning(
                "Export of %s report %s in %s failed: %s",
                request.report_type.value,
                request.handle,
                language.display_name,
                exc.reason,
            )
            raise
        except Exception:
            self._transition(ExportState.ERRORED)
            logger.exception(
                "Unexpected error exporting report %s in %s",
                request.handle,
                language.display_name,
            )
            raise

    def _require_active(self, request_id: str) -> DownloadRequest:
        if self._active is None or self._active.request_id != request_id:
            raise DownloadRequestNotFoundError(f"Download request {request_id} is not active")
        return self._active

    def _transition(self, state: ExportState) -> None:
        logger.debug("Export state %s -> %s", self._state.value, state.value)
        self._state = state
        self._history.append(state)

    def _reset(self, request: DownloadRequest) -> None:
        # A request that was already released must not clear its successor.
        if self._active is not request:
            return
        self._active = None
        self._task = None
        self._cancel_requested = False
        self._transition(ExportState.IDLE)


__all__ = [
    "DownloadRequest",
    "ExportArtifact",
    "ExportCoordinator",
    "ExportState",
    "Regenerator",
]
