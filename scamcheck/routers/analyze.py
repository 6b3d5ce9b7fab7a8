import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from ..dependencies import get_analysis_service
from ..models.analysis import AnalysisErrorResponse, AnalysisReport, AnalysisRequest
from ..services.analysis_service import AnalysisService
from ..services.errors import ConfigurationError, GatewayError, InvalidResponseError, ReportValidationError

router = APIRouter(tags=["Analysis"])
logger = logging.getLogger(__name__)


def _error(error: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": error, **extra},
    )


@router.post(
    "/analyze",
    summary="Assess scam risk",
    description=(
        "Sends the conversation, context, link, notes and optional staged image to Gemini and "
        "returns a normalized scam-risk report. The staged image is deleted afterwards."
    ),
    responses={
        200: {"model": AnalysisReport},
        500: {"model": AnalysisErrorResponse},
    },
)
async def analyze_route(
    request: Optional[AnalysisRequest] = Body(default=None),
    service: AnalysisService = Depends(get_analysis_service),
) -> JSONResponse:
    try:
        report = await service.analyze(request or AnalysisRequest())
    except ConfigurationError as exc:
        return _error(str(exc))
    except InvalidResponseError as exc:
        return _error("Invalid AI response (not JSON)", raw=exc.raw)
    except ReportValidationError as exc:
        return _error("Invalid AI response (schema mismatch)", detail=str(exc))
    except GatewayError as exc:
        return _error("Analysis failed", detail=str(exc))
    except Exception as exc:
        logger.exception("Analysis failed unexpectedly.")
        return _error("Analysis failed", detail=str(exc))

    return JSONResponse(status_code=status.HTTP_200_OK, content=report)
