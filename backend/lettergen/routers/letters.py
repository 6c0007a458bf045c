"""
Letter generation API endpoint.
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from lettergen.clients import ClientConfigError, build_clients
from lettergen.config import load_settings
from lettergen.models.letter import (
    ErrorResponse,
    GenerateLetterRequest,
    GenerateLetterResponse,
)
from lettergen.services.letter_generator import LetterGenerator

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_letter_generator() -> LetterGenerator:
    """
    Build the LetterGenerator once per process.

    Google clients are created on first use so the app can start (and be
    tested) without credentials present. Setup failures surface as
    ClientConfigError, which main.py renders as the JSON error envelope.
    """
    try:
        settings = load_settings()
    except ValueError as e:
        raise ClientConfigError(f"Invalid configuration: {str(e)}", "invalid_config") from e

    clients = build_clients(settings)
    return LetterGenerator(
        table=clients.table,
        docs=clients.docs,
        drive=clients.drive,
        settings=settings,
    )


@router.post(
    "/generate-letter",
    response_model=GenerateLetterResponse,
    response_model_by_alias=True,
    responses={
        200: {
            "description": "One result per requested email, in request order",
            "content": {
                "application/json": {
                    "example": {
                        "Message": "Success",
                        "Response": [
                            {
                                "email": "jane@example.com",
                                "url": "https://docs.google.com/document/d/1AbC",
                                "is_success": True,
                            },
                            {
                                "email": "unknown@example.com",
                                "url": "",
                                "is_success": False,
                            },
                        ],
                    }
                }
            },
        },
        500: {"model": ErrorResponse, "description": "Letter generation failed"},
    },
)
def generate_letter(
    form: GenerateLetterRequest,
    generator: LetterGenerator = Depends(get_letter_generator),
):
    """
    Generate compensation letters for the given emails.

    Emails that are not in the employee sheet come back with
    is_success=false and an empty url.
    """
    logger.info("Generating letters for %d email(s)", len(form.email))

    try:
        results = generator.generate_letters(form.email)
    except Exception as e:
        logger.error("[handler] error while generating letters: %s", e, exc_info=True)
        error = ErrorResponse(internal_message=str(e))
        return JSONResponse(status_code=500, content=error.model_dump(by_alias=True))

    succeeded = sum(1 for r in results if r.is_success)
    logger.info("Generated %d of %d letter(s)", succeeded, len(form.email))

    return GenerateLetterResponse(response=results)
