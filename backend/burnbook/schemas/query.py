"""问答相关的请求/响应模型"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from burnbook.schemas.base import CamelModel


class QueryRequest(CamelModel):
    question: Optional[str] = Field(default=None, description="自然语言问题")
    entity_type: Optional[str] = Field(default=None, pattern="^(company|product|feature)$")
    entity_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"question": "What do users think about the mobile app?"}
        }


class QuerySource(CamelModel):
    post_id: str
    title: Optional[str] = None
    snippet: str
    sentiment: str


class QuerySummary(CamelModel):
    total_mentions: int = 0
    positive_percent: int = 0
    negative_percent: int = 0
    neutral_percent: int = 0


class QueryResponse(CamelModel):
    success: bool
    answer: Optional[str] = None
    sources: List[QuerySource] = []
    summary: QuerySummary = QuerySummary()
    response_time_ms: int = 0
    error: Optional[str] = None


class QueryHistoryItem(CamelModel):
    id: UUID
    question: str
    answer: Optional[str] = None
    context_entities: List[str] = []
    sources: List[str] = []
    response_time_ms: Optional[int] = None
    created_at: datetime


class QueryHistoryResponse(CamelModel):
    data: List[QueryHistoryItem]
