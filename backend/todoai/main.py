"""Main FastAPI application for the TodoAI backend."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todoai.api.routes.ai import router as ai_router
from todoai.api.routes.auth import router as auth_router
from todoai.api.routes.profile import router as profile_router
from todoai.api.routes.task import router as task_router
from todoai.core.config import settings
from todoai.core.errors import register_error_handlers
from todoai.core.logging import configure_logging
from todoai.core.middleware import RequestIDMiddleware
from todoai.observability.client import init_opik
from todoai.observability.tracing import trace

configure_logging(log_level=settings.log_level)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Observability backends are initialised once the event loop is running.
    init_opik()
    yield


app = FastAPI(title=settings.app_name, version="0.1.0", debug=settings.debug, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)
register_error_handlers(app)

app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(task_router)
app.include_router(ai_router)


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check() -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}):
        return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
