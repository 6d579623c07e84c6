"""Usability analysis endpoint.

Accepts ``{url?, html?, provider, key?, model?}`` and answers with a
streamed body of newline-delimited ``{"delta": ...}`` records. Errors are
shaped here:
- rejected requests: 400 with ``{"error": ...}``
- provider error status: the provider's status and body, verbatim
- unreachable provider: 502 with ``{"error": ...}``
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from src.constants import DELTA_STREAM_MEDIA_TYPE
from src.models.analysis_models import AnalysisRequest, ErrorRecord
from src.services.analysis_dispatcher import (
    AnalysisDispatcher,
    InputError,
    get_analysis_dispatcher,
)
from src.services.providers import ProviderUnavailableError, UpstreamError
from src.services.stream_normalizer import stream_delta_records

logger = logging.getLogger(__name__)
router = APIRouter()

INVALID_BODY_MESSAGE = "Request body must be a JSON object."


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        ErrorRecord(error=message).model_dump(), status_code=status_code
    )


async def _parse_request(request: Request) -> AnalysisRequest:
    try:
        payload = await request.json()
        return AnalysisRequest.model_validate(payload)
    except (ValueError, ValidationError) as e:
        raise InputError(INVALID_BODY_MESSAGE) from e


@router.post("")
async def analyze(
    request: Request,
    dispatcher: AnalysisDispatcher = Depends(get_analysis_dispatcher),
):
    """Audit a page and stream the model's findings."""
    request_id = getattr(request.state, "request_id", None)

    try:
        analysis_request = await _parse_request(request)
        source = await dispatcher.dispatch(analysis_request)
    except InputError as e:
        logger.info("Analysis request %s rejected: %s", request_id, e)
        return _error_response(str(e), 400)
    except UpstreamError as e:
        logger.warning(
            "Analysis request %s: %s provider returned %s",
            request_id,
            e.provider,
            e.status_code,
        )
        return Response(
            content=e.body,
            status_code=e.status_code,
            media_type=DELTA_STREAM_MEDIA_TYPE,
        )
    except ProviderUnavailableError as e:
        logger.warning("Analysis request %s: %s", request_id, e)
        return _error_response(str(e), 502)

    return StreamingResponse(
        stream_delta_records(
            source,
            queue_size=dispatcher.settings.stream_queue_size,
            source_name=analysis_request.provider,
        ),
        media_type=DELTA_STREAM_MEDIA_TYPE,
    )
