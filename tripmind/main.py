"""
TripMind HTTP service.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router
from .config import settings


logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """FastAPI app with the trip assistant routes mounted under /api."""
    application = FastAPI(
        title="TripMind",
        description="Trip-phase travel assistant: planning, pre-trip preparation, in-trip help and post-trip feedback",
        version="1.0.0",
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)

    @application.get("/health")
    async def health():
        """Liveness plus the configured providers."""
        return {
            "status": "healthy",
            "llm_provider": settings.llm_provider,
            "location_provider": settings.location_provider,
        }

    logger.info(f"TripMind app created (llm={settings.llm_provider}, location={settings.location_provider})")
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tripmind.main:app", host=settings.host, port=settings.port, reload=settings.debug)
