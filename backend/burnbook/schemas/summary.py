"""情感汇总相关的响应模型"""
from typing import List
from uuid import UUID

from burnbook.schemas.base import CamelModel


class SummaryRowResponse(CamelModel):
    entity_id: UUID
    entity_name: str
    entity_type: str
    total_mentions: int
    positive_count: int
    negative_count: int
    neutral_count: int
    mixed_count: int
    avg_sentiment_score: float
    avg_confidence: float


class SummaryResponse(CamelModel):
    data: List[SummaryRowResponse]


class SummaryRefreshResponse(CamelModel):
    entities: int
