import asyncio

from fastapi import APIRouter, HTTPException, Request

from app.core.rate_limit import rate_limit
from app.schemas.report import AnalyzeRequest, ReportModel
from app.services.analysis_llm import AnalysisLLMError
from app.services.analysis_service import AnalysisQualityError, run_analysis

router = APIRouter()


@router.post("/analyze", response_model=ReportModel)
@rate_limit()
async def analyze_resume(request: Request, payload: AnalyzeRequest):
    _ = request
    if not payload.resume_text.strip():
        raise HTTPException(status_code=400, detail="Resume text is required and must be a non-empty string.")
    try:
        return await asyncio.to_thread(run_analysis, payload.resume_text, payload.job_description)
    except (AnalysisQualityError, AnalysisLLMError) as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
