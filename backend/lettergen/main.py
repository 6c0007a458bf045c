"""
Letter Generator API
FastAPI application that turns compensation-change sheet rows into
Google Docs letters.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lettergen.clients import ClientConfigError, load_credentials
from lettergen.config import load_settings
from lettergen.models.letter import ErrorResponse
from lettergen.routers import letters

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Letter Generator API",
    description="Generates compensation-change letters from a Google Sheet and a Docs template",
    version="0.1.0",
)

app.include_router(letters.router, tags=["letters"])


@app.exception_handler(ClientConfigError)
async def client_config_error_handler(request: Request, exc: ClientConfigError):
    """Google credentials are missing or unusable; report it in the standard error envelope."""
    logger.error("Google client setup failed: %s", exc.message)
    error = ErrorResponse(internal_message=exc.message)
    return JSONResponse(status_code=500, content=error.model_dump(by_alias=True))


@app.get("/")
async def root():
    return {"message": "Letter Generator API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


def run() -> None:
    """
    Authorize with Google, then start the HTTP server.

    Any browser consent needed for a first-time OAuth token happens here,
    before the server accepts requests.
    """
    import uvicorn

    settings = load_settings()
    load_credentials(settings, interactive=True)

    logger.info("Starting HTTP server on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
