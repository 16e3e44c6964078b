"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from exchange_planner.api.admin import router as admin_router
from exchange_planner.api.models import PlanRequest, PlanResponse
from exchange_planner.app_logging import configure_logging
from exchange_planner.containers import AppContainer
from exchange_planner.domain.catalog import EXCHANGE_SYSTEM_IDS
from exchange_planner.errors import DataIntegrityError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Exchange Planner")
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(DataIntegrityError)
    async def data_integrity_handler(
        request: Request, exc: DataIntegrityError
    ) -> JSONResponse:
        logger.warning("Data integrity error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/plans")
    def generate_plan(payload: PlanRequest, request: Request) -> PlanResponse:
        """Generate a daily exchange plan from macro targets."""
        if payload.system_id not in EXCHANGE_SYSTEM_IDS:
            raise DataIntegrityError(f"Unknown exchange system {payload.system_id}")
        state_container: AppContainer = request.app.state.container
        plan = state_container.plan_service.generate(
            payload.system_id,
            payload.targets.to_domain(),
            payload.constraints.to_domain(),
        )
        return PlanResponse.from_domain(plan)

    return app
