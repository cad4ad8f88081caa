"""分析API：URL 采集分析 / 文本分析"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from burnbook.api.deps import get_orchestrator
from burnbook.schemas import (
    AnalyzeRequest,
    EntityResult,
    IngestResponse,
    PostResult,
    TextAnalyzeResponse,
)
from burnbook.services.ingestion import (
    ERROR_INVALID_URL,
    ERROR_JOB_CREATION,
    IngestionOrchestrator,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    ERROR_INVALID_URL: 400,
    ERROR_JOB_CREATION: 500,
}


def _json(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=model.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.post(
    "",
    response_model=None,
    responses={200: {"model": IngestResponse}, 400: {"model": IngestResponse}, 500: {"model": IngestResponse}},
)
async def analyze(
    request: AnalyzeRequest,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """提交 Reddit URL 进行采集分析，或直接分析一段文本"""
    url = (request.url or "").strip()
    text = (request.text or "").strip()

    if url:
        report = await orchestrator.run(url)
        has_job = report.job_id is not None
        response = IngestResponse(
            success=report.success,
            job_id=report.job_id,
            posts_found=report.posts_found if has_job else None,
            posts_analyzed=report.posts_analyzed if has_job else None,
            results=[
                PostResult(
                    post_id=o.post_id,
                    sentiment=o.sentiment,
                    confidence=o.confidence,
                    entities=o.entities,
                )
                for o in report.results
            ] if has_job else None,
            error=report.error,
        )
        return _json(response, ERROR_STATUS.get(report.error_kind, 200))

    if text:
        analysis = await orchestrator.analyze_text(text)
        return _json(TextAnalyzeResponse(
            success=True,
            sentiment=analysis.scores.sentiment,
            confidence=analysis.scores.confidence,
            sentiment_score=analysis.scores.sentiment_score,
            key_phrases=analysis.scores.key_phrases,
            entities=[
                EntityResult(name=e.name, type=e.type, confidence=e.confidence)
                for e in analysis.entities
            ],
        ))

    raise HTTPException(status_code=400, detail="Please provide either a url or text to analyze")
