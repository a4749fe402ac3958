"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from pantry_chef.api.admin import router as admin_router
from pantry_chef.api.models import PantryRecommendationRequest, RecommendationRequest
from pantry_chef.app_logging import configure_logging
from pantry_chef.containers import AppContainer
from pantry_chef.domain.errors import (
    InvalidResponseError,
    MissingCredentialError,
    NetworkError,
    NoIngredientsError,
    RecommendationCancelled,
    RecommendationError,
)
from pantry_chef.domain.recipes import Recipe

_STATUS_BY_ERROR: dict[type[RecommendationError], int] = {
    NoIngredientsError: status.HTTP_400_BAD_REQUEST,
    MissingCredentialError: status.HTTP_503_SERVICE_UNAVAILABLE,
    NetworkError: status.HTTP_502_BAD_GATEWAY,
    InvalidResponseError: status.HTTP_502_BAD_GATEWAY,
    RecommendationCancelled: status.HTTP_504_GATEWAY_TIMEOUT,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(RecommendationError)
    async def recommendation_error_handler(
        request: Request, exc: RecommendationError
    ) -> JSONResponse:
        status_code = _STATUS_BY_ERROR.get(
            type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        logger.warning(
            "Recommendation failed on %s: %s: %s", request.url.path, exc.kind, exc
        )
        return JSONResponse(status_code=status_code, content=_error_body(exc))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/recommendations")
    async def recommend(
        body: RecommendationRequest, request: Request
    ) -> dict[str, object]:
        """Recommend recipes for the supplied inventory and meal history."""
        state_container: AppContainer = request.app.state.container
        recipes = await state_container.recommendation_service.recommend(
            [item.to_snapshot() for item in body.ingredients],
            [entry.to_entry() for entry in body.history],
            deadline=body.deadline_seconds,
        )
        return {"recipes": _serialize(recipes)}

    @app.post("/pantry/recommendations")
    async def recommend_from_pantry(
        body: PantryRecommendationRequest, request: Request
    ) -> dict[str, object]:
        """Recommend recipes for the stored pantry."""
        state_container: AppContainer = request.app.state.container
        if state_container.pantry_service is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Pantry store is not configured",
            )
        recipes = await state_container.pantry_service.recommend(
            deadline=body.deadline_seconds
        )
        return {"recipes": _serialize(recipes)}

    return app


def _serialize(recipes: list[Recipe]) -> list[dict[str, object]]:
    return [recipe.model_dump(mode="json") for recipe in recipes]


def _error_body(exc: RecommendationError) -> dict[str, object]:
    body: dict[str, object] = {
        "error": exc.kind,
        "message": str(exc),
        "recovery_suggestion": exc.recovery_suggestion,
    }
    if isinstance(exc, InvalidResponseError):
        body["detail"] = exc.detail()
    return body
