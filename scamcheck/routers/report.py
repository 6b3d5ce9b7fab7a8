import asyncio

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from ..models.analysis import AnalysisReport
from ..services.pdf_service import render_report_pdf

router = APIRouter(prefix="/report", tags=["Report"])


@router.post("/pdf", response_class=Response, summary="Render a report as PDF")
async def report_pdf_route(report: AnalysisReport) -> Response:
    try:
        pdf_bytes = await asyncio.to_thread(render_report_pdf, report)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"PDF generation failed: {exc}",
        )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=scam_report.pdf"},
    )
