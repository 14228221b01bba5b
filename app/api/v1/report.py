import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.core.rate_limit import rate_limit
from app.report import ReportRenderer
from app.schemas.report import LayoutPreviewResponse, ReportModel

router = APIRouter()

_renderer: ReportRenderer | None = None


def get_report_renderer() -> ReportRenderer:
    global _renderer
    if _renderer is None:
        _renderer = ReportRenderer()
    return _renderer


@router.post("/report/layout", response_model=LayoutPreviewResponse)
@rate_limit()
async def report_layout(
    request: Request,
    payload: ReportModel,
    renderer: ReportRenderer = Depends(get_report_renderer),
):
    _ = request
    result = await asyncio.to_thread(renderer.layout, payload)
    return LayoutPreviewResponse(total_pages=result.total_pages, instructions=result.to_dicts())


@router.post("/report")
@rate_limit()
async def report_pdf(
    request: Request,
    payload: ReportModel,
    renderer: ReportRenderer = Depends(get_report_renderer),
):
    _ = request
    report = await asyncio.to_thread(renderer.render, payload)
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{report.filename}"',
            "X-Report-Pages": str(report.total_pages),
        },
    )
