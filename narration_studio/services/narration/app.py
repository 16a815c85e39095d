"""Narration studio API endpoints used by the recording and editing UIs."""

import base64
import binascii

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from narration_studio.services.content_store import build_content_store
from narration_studio.services.narration.orchestrator import NarrationSyncOrchestrator
from narration_studio.shared.config import StudioConfig
from narration_studio.shared.enums import ErrorKind, WorkflowStatus
from narration_studio.shared.errors import StudioError
from narration_studio.shared.logging_utils import setup_logging
from narration_studio.shared.models import (
    APIResponse,
    ErrorResponse,
    GenerateAudioRequest,
    ModuleSummary,
    SaveAudioRequest,
    SaveTextRequest,
    SlideStatusEntry,
    WorkflowResult,
)

logger = setup_logging("narration-service")

ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.SLIDE_NOT_FOUND: 404,
    ErrorKind.VERSION_CONFLICT: 409,
    ErrorKind.CORRUPT_MANIFEST: 500,
    ErrorKind.TRANSCODE: 500,
    ErrorKind.PROVIDER: 502,
    ErrorKind.STORE: 502,
}


def _error_response(kind: ErrorKind, message: str, retryable: bool) -> JSONResponse:
    body = ErrorResponse(message=message, error_code=kind.value, retryable=retryable)
    return JSONResponse(status_code=ERROR_STATUS_CODES.get(kind, 500), content=body.model_dump())


def _workflow_response(result: WorkflowResult) -> JSONResponse:
    if result.status == WorkflowStatus.FAILED:
        return _error_response(result.error_kind or ErrorKind.STORE, result.message, result.retryable)
    body = APIResponse(message=result.message, data=result.model_dump(mode="json"))
    return JSONResponse(status_code=200, content=body.model_dump())


def create_app(
    config: StudioConfig | None = None,
    orchestrator: NarrationSyncOrchestrator | None = None,
) -> FastAPI:
    """Build the API application around a configured orchestrator."""
    config = config or StudioConfig.from_env()
    if orchestrator is None:
        orchestrator = NarrationSyncOrchestrator(config, build_content_store(config))

    app = FastAPI(
        title="Narration Studio Service",
        description="Keeps slide narration text and slide audio consistent",
        version="1.0.0",
    )
    app.state.config = config
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def verify_studio_secret(x_studio_secret: str | None = Header(default=None)) -> None:
        if config.studio_secret and x_studio_secret != config.studio_secret:
            raise HTTPException(status_code=401, detail="Invalid studio secret")

    @app.exception_handler(StudioError)
    async def studio_error_handler(request: Request, exc: StudioError) -> JSONResponse:
        return _error_response(exc.kind, exc.message, exc.retryable)

    @app.get("/health")
    async def health_check() -> APIResponse:
        """Health check endpoint for the narration service."""
        return APIResponse(
            message="Narration Service is healthy",
            data={
                "store_backend": config.store_backend.value,
                "ffmpeg_available": orchestrator.transcoder.ffmpeg_available(),
                "tts_configured": bool(config.elevenlabs_api_key),
            },
        )

    @app.post("/api/save-audio", dependencies=[Depends(verify_studio_secret)])
    async def save_audio(request: SaveAudioRequest) -> JSONResponse:
        """Store a recording as protected custom audio for one slide."""
        try:
            audio = base64.b64decode(request.audio, validate=True)
        except (binascii.Error, ValueError):
            return _error_response(ErrorKind.VALIDATION, "Audio must be base64 encoded", False)
        if len(audio) > config.max_upload_bytes:
            return _error_response(ErrorKind.VALIDATION, "Audio exceeds the upload size limit", False)

        result = await orchestrator.save_recording(
            request.deck_id,
            request.slide,
            audio,
            narration=request.narration,
            source_format=request.format,
        )
        return _workflow_response(result)

    @app.post("/api/save-text", dependencies=[Depends(verify_studio_secret)])
    async def save_text(request: SaveTextRequest) -> JSONResponse:
        """Rewrite the narration of one slide in its deck document."""
        result = await orchestrator.save_narration_text(request.deck_id, request.slide, request.narration)
        return _workflow_response(result)

    @app.post("/api/generate-audio", dependencies=[Depends(verify_studio_secret)])
    async def generate_audio(request: GenerateAudioRequest) -> JSONResponse:
        """Synthesize audio for one slide."""
        result = await orchestrator.generate_audio(request.deck_id, request.slide, request.text)
        return _workflow_response(result)

    @app.get("/api/modules", response_model=list[ModuleSummary])
    async def list_modules() -> list[ModuleSummary]:
        return await orchestrator.list_modules()

    @app.get("/api/modules/{deck_id}/slides", response_model=list[SlideStatusEntry])
    async def list_slides(deck_id: str) -> list[SlideStatusEntry]:
        return await orchestrator.list_slides(deck_id)

    logger.info("Narration service configured with %s store", config.store_backend.value)
    return app
