"""自然语言问答API"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from burnbook.api.deps import get_query_answerer
from burnbook.database import get_db
from burnbook.exceptions import BurnBookError
from burnbook.schemas import (
    QueryHistoryItem,
    QueryHistoryResponse,
    QueryRequest,
    QueryResponse,
    QuerySource,
    QuerySummary,
)
from burnbook.services.persistence import SentimentRepository
from burnbook.services.query import QueryAnswerer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=QueryResponse)
async def ask(
    request: QueryRequest,
    answerer: QueryAnswerer = Depends(get_query_answerer),
):
    """针对已分析的情感数据提问"""
    question = (request.question or "").strip()
    if not question:
        raise HTTPException(status_code=400, detail="Please provide a question")

    try:
        result = await answerer.answer(
            question,
            entity_type=request.entity_type,
            entity_name=request.entity_name,
        )
    except BurnBookError as e:
        logger.error(f"问答失败: {e}")
        return QueryResponse(success=False, error=str(e))

    return QueryResponse(
        success=True,
        answer=result.answer,
        sources=[
            QuerySource(
                post_id=s.post_id,
                title=s.title,
                snippet=s.snippet,
                sentiment=s.sentiment,
            )
            for s in result.sources
        ],
        summary=QuerySummary(
            total_mentions=result.summary.total_mentions,
            positive_percent=result.summary.positive_percent,
            negative_percent=result.summary.negative_percent,
            neutral_percent=result.summary.neutral_percent,
        ),
        response_time_ms=result.response_time_ms,
    )


@router.get("/history", response_model=QueryHistoryResponse)
async def query_history(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """最近的提问记录"""
    entries = SentimentRepository(db).recent_queries(limit)
    return QueryHistoryResponse(
        data=[
            QueryHistoryItem(
                id=e.id,
                question=e.question,
                answer=e.answer,
                context_entities=e.context_entities or [],
                sources=e.sources or [],
                response_time_ms=e.response_time_ms,
                created_at=e.created_at,
            )
            for e in entries
        ]
    )
