"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration

from src.api import analyze, health
from src.config import get_settings
from src.logging_config import setup_logfire
from src.middleware.request_id import RequestIDMiddleware

APP_TITLE = "UX Audit Service"
APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    setup_logfire(app)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            # Requests carry provider API keys
            send_default_pii=False,
            integrations=[FastApiIntegration()],
        )

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        local_model=settings.local_model,
        chat_model=settings.chat_model,
        content_model=settings.content_model,
    )

    yield

    logfire.info("Application shutdown complete")


app = FastAPI(
    title=APP_TITLE,
    description="Streams LLM usability audits of web pages from extracted markup signals",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Request IDs for log correlation
app.add_middleware(RequestIDMiddleware)

# The browser client is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(analyze.router, prefix="/api/analyze", tags=["analyze"])


@app.get("/")
def root():
    """Root endpoint."""
    settings = get_settings()
    return {
        "message": APP_TITLE,
        "version": APP_VERSION,
        "models": {
            "local": settings.local_model,
            "chat": settings.chat_model,
            "content": settings.content_model,
        },
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=port, reload=os.getenv("ENV") == "local"
    )
