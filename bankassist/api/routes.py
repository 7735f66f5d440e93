"""
FastAPI routes for the banking assistant report export service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response

from bankassist.core.config import AppSettings
from bankassist.dependencies import (
    SettingsDependency,
    get_export_coordinator,
    get_regeneration_service,
    get_report_store,
)
from bankassist.schemas import (
    CreateReportRequest,
    DownloadPrompt,
    ExportStatus,
    LanguageChoice,
    ReportEnvelope,
    ReportLanguage,
)
from bankassist.services import (
    DownloadRequestNotFoundError,
    EmptyContent,
    ExportCancelled,
    ExportCoordinator,
    ExportFailure,
    ExportInProgressError,
    RasterizationFailed,
    RegenerationFailed,
    ReportNotFoundError,
    ReportRegenerationService,
    ReportStore,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _failure_detail(exc: ExportFailure, fallback: ReportLanguage) -> dict[str, Any]:
    language = exc.language or fallback
    return {
        "message": f"Could not produce the report in {language.display_name}.",
        "reason": exc.reason,
        "language": language.value,
    }


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post(
    "/reports",
    status_code=HTTPStatus.CREATED,
    response_model=ReportEnvelope,
)
async def create_report(
    payload: CreateReportRequest,
    store: Annotated[ReportStore, Depends(get_report_store)],
    regeneration: Annotated[ReportRegenerationService, Depends(get_regeneration_service)],
    settings: AppSettings = SettingsDependency,
) -> ReportEnvelope:
    """Run the first analysis for a loan row or statement and keep the result."""
    language = payload.language or settings.default_language
    try:
        inputs = payload.to_inputs()
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc

    try:
        report = await regeneration.regenerate(
            inputs.report_type, inputs, language
        )
    except RegenerationFailed as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=_failure_detail(exc, language),
        ) from exc

    handle = store.create(report, language, inputs)
    logger.info(
        "Stored %s report %s in %s",
        inputs.report_type.value,
        handle,
        language.value,
    )
    return ReportEnvelope(handle=handle, language=language, report=report)


@router.get("/reports/{handle}", response_model=ReportEnvelope)
async def get_report(
    handle: str,
    store: Annotated[ReportStore, Depends(get_report_store)],
) -> ReportEnvelope:
    stored = store.get(handle)
    if stored is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Report not found")
    return ReportEnvelope(handle=handle, language=stored.language, report=stored.report)


@router.post("/reports/{handle}/download", response_model=DownloadPrompt)
async def request_download(
    handle: str,
    coordinator: Annotated[ExportCoordinator, Depends(get_export_coordinator)],
) -> DownloadPrompt:
    """Open the language prompt for a report download."""
    try:
        request = coordinator.request_download(handle)
    except ReportNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc)) from exc
    except ExportInProgressError as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc

    return DownloadPrompt(
        request_id=request.request_id,
        handle=request.handle,
        report_type=request.report_type,
        current_language=request.current_language,
    )


@router.post("/exports/{request_id}/language")
async def export_report(
    request_id: str,
    choice: LanguageChoice,
    coordinator: Annotated[ExportCoordinator, Depends(get_export_coordinator)],
) -> Response:
    """Confirm the language and stream back the paginated PDF."""
    language = choice.language
    try:
        artifact = await coordinator.choose_language(request_id, language)
    except DownloadRequestNotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc)) from exc
    except (ExportInProgressError, ExportCancelled) as exc:
        raise HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc)) from exc
    except RegenerationFailed as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY, detail=_failure_detail(exc, language)
        ) from exc
    except EmptyContent as exc:
        raise HTTPException(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            detail=_failure_detail(exc, language),
        ) from exc
    except RasterizationFailed as exc:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=_failure_detail(exc, language),
        ) from exc

    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "X-Page-Count": str(artifact.page_count),
            "Content-Language": artifact.language.value,
        },
    )


@router.post("/exports/{request_id}/cancel", status_code=HTTPStatus.NO_CONTENT)
async def cancel_export(
    request_id: str,
    coordinator: Annotated[ExportCoordinator, Depends(get_export_coordinator)],
) -> Response:
    """Discard the download dialog; repeated calls are harmless."""
    if coordinator.cancel(request_id):
        logger.info("Download request %s cancelled", request_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/exports/status", response_model=ExportStatus)
async def export_status(
    coordinator: Annotated[ExportCoordinator, Depends(get_export_coordinator)],
) -> ExportStatus:
    return coordinator.status()


__all__ = ["router"]
