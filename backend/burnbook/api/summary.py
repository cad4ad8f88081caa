"""情感汇总API"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from burnbook.database import get_db
from burnbook.exceptions import PersistenceError
from burnbook.schemas import SummaryRefreshResponse, SummaryResponse, SummaryRowResponse
from burnbook.services.summary import SummaryAggregator

router = APIRouter()


@router.get("", response_model=SummaryResponse)
async def get_summary(
    entity_type: Optional[str] = Query(default=None, pattern="^(company|product|feature)$"),
    entity_name: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    """按实体的情感汇总，按提及数倒序"""
    rows = SummaryAggregator(db).read(entity_type, entity_name)
    return SummaryResponse(
        data=[
            SummaryRowResponse(
                entity_id=row.entity_id,
                entity_name=row.entity_name,
                entity_type=row.entity_type,
                total_mentions=row.total_mentions,
                positive_count=row.positive_count,
                negative_count=row.negative_count,
                neutral_count=row.neutral_count,
                mixed_count=row.mixed_count,
                avg_sentiment_score=row.avg_sentiment_score,
                avg_confidence=row.avg_confidence,
            )
            for row in rows
        ]
    )


@router.post("/refresh", response_model=SummaryRefreshResponse)
async def refresh_summary(db: Session = Depends(get_db)):
    """立即重新计算汇总表"""
    try:
        count = SummaryAggregator(db).refresh()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SummaryRefreshResponse(entities=count)
