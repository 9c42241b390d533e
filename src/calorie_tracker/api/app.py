"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Request,
    Response,
    status,
)
from fastapi.responses import JSONResponse

from calorie_tracker.api.models import (
    AnalysisOut,
    EntryCreate,
    EntryEdit,
    EntryOut,
    ServingsAdjust,
    SettingsOut,
    SettingsUpdate,
    TodayOut,
)
from calorie_tracker.app_logging import configure_logging
from calorie_tracker.containers import AppContainer
from calorie_tracker.deep_links import DeepLinkAction, parse_deep_link
from calorie_tracker.domain.entries import PersistenceError
from calorie_tracker.domain.settings import Provider
from calorie_tracker.domain.snapshot import CalorieSnapshot
from calorie_tracker.domain.vision import (
    AnalysisApiError,
    AnalysisError,
    AnalysisNetworkError,
    InvalidAnalysisResponseError,
)

logger = logging.getLogger(__name__)

_DEEP_LINK_ENDPOINTS = {DeepLinkAction.OPEN_CAMERA: "/entries/capture"}


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_token(
    request: Request, x_api_token: str | None = Header(default=None)
) -> None:
    """Ensure requests include the configured API token."""
    expected = _container(request).settings.api_token
    if not x_api_token or x_api_token != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(dependencies=[Depends(require_token)])


@router.get("/today")
async def today(request: Request) -> TodayOut:
    """Return totals and entries for the active day window."""
    summary = _container(request).accounting_service.get_today()
    return TodayOut.from_summary(summary)


@router.post("/entries/capture", status_code=status.HTTP_201_CREATED)
async def capture_entry(request: Request) -> EntryOut:
    """Analyze the raw image body and log it as a new entry."""
    image_bytes = await request.body()
    entry = await _container(request).capture_service.capture(image_bytes)
    return EntryOut.from_entry(entry)


@router.post("/entries", status_code=status.HTTP_201_CREATED)
async def create_entry(payload: EntryCreate, request: Request) -> EntryOut:
    """Log an entry without photo analysis."""
    entry = await _container(request).accounting_service.add_entry(
        description=payload.description,
        calories_per_serving=payload.calories_per_serving,
    )
    return EntryOut.from_entry(entry)


@router.patch("/entries/{entry_id}")
async def edit_entry(entry_id: UUID, payload: EntryEdit, request: Request) -> EntryOut:
    """Overwrite calories per serving or servings."""
    entry = await _container(request).accounting_service.edit_entry(
        entry_id,
        calories_per_serving=payload.calories_per_serving,
        servings=payload.servings,
    )
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return EntryOut.from_entry(entry)


@router.post("/entries/{entry_id}/servings")
async def adjust_servings(
    entry_id: UUID, payload: ServingsAdjust, request: Request
) -> EntryOut:
    """Increment or decrement servings, flooring at one."""
    entry = await _container(request).accounting_service.adjust_servings(
        entry_id, payload.delta
    )
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return EntryOut.from_entry(entry)


@router.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(entry_id: UUID, request: Request) -> Response:
    """Delete an entry; unknown ids are accepted."""
    await _container(request).accounting_service.delete_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/entries/{entry_id}/image")
async def entry_image(entry_id: UUID, request: Request) -> Response:
    """Return the stored photo for an entry."""
    image = _container(request).accounting_service.get_entry_image(entry_id)
    if image is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(content=image, media_type="image/jpeg")


@router.get("/settings")
async def get_settings(request: Request) -> SettingsOut:
    """Return settings with the API key masked."""
    settings = _container(request).accounting_service.get_settings()
    return SettingsOut.from_settings(settings)


@router.patch("/settings")
async def update_settings(payload: SettingsUpdate, request: Request) -> SettingsOut:
    """Save the provided settings fields."""
    settings = await _container(request).accounting_service.update_settings(
        daily_calorie_target=payload.daily_calorie_target,
        day_reset_hour=payload.day_reset_hour,
        provider=payload.provider,
        api_key=payload.api_key,
    )
    return SettingsOut.from_settings(settings)


@router.post("/settings/test-connection")
async def test_connection(
    request: Request,
    x_provider: Provider | None = Header(default=None),
    x_provider_key: str | None = Header(default=None),
) -> AnalysisOut:
    """Analyze the raw image body with candidate credentials, logging nothing."""
    image_bytes = await request.body()
    analysis = await _container(request).capture_service.test_connection(
        image_bytes, provider=x_provider, api_key=x_provider_key
    )
    return AnalysisOut(
        description=analysis.description,
        calories_per_serving=analysis.calories_per_serving,
    )


@router.get("/snapshot")
async def snapshot(request: Request) -> CalorieSnapshot:
    """Return the last published snapshot."""
    published = _container(request).publisher.latest()
    if published is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return published


@router.get("/deep-links")
async def resolve_deep_link(url: str, request: Request) -> dict[str, str]:
    """Resolve an inbound deep link to the endpoint that serves it."""
    action = parse_deep_link(url, _container(request).settings.deep_link_scheme)
    if action is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Unknown deep link"
        )
    return {"action": action.value, "endpoint": _DEEP_LINK_ENDPOINTS[action]}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(
        request: Request, exc: AnalysisError
    ) -> JSONResponse:
        logger.warning(
            "Food photo analysis failed",
            extra={"error": type(exc).__name__},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=_analysis_status(exc),
            content=_error_body(container, exc, exc.user_message),
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(
        request: Request, exc: PersistenceError
    ) -> JSONResponse:
        logger.error("Record store write failed", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_body(
                container, exc, "Couldn't save your changes. Please try again."
            ),
        )

    app.include_router(router)
    return app


def _analysis_status(exc: AnalysisError) -> int:
    if isinstance(exc, AnalysisNetworkError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, AnalysisApiError | InvalidAnalysisResponseError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


def _error_body(
    container: AppContainer, exc: Exception, message: str
) -> dict[str, object]:
    """Return an error payload with debug detail in local environments."""
    body: dict[str, object] = {"error": type(exc).__name__, "detail": message}
    if container.settings.environment == "local":
        cause = exc.__cause__
        if cause is not None:
            body["debug"] = f"{type(cause).__name__}: {cause}".strip()
    return body
