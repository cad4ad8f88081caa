"""API请求/响应模型"""
from burnbook.schemas.analysis import (
    AnalyzeRequest,
    PostResult,
    IngestResponse,
    EntityResult,
    TextAnalyzeResponse,
)
from burnbook.schemas.query import (
    QueryRequest,
    QuerySource,
    QuerySummary,
    QueryResponse,
    QueryHistoryItem,
    QueryHistoryResponse,
)
from burnbook.schemas.job import JobCreate, JobQueuedResponse, JobResponse, JobListResponse
from burnbook.schemas.summary import SummaryRowResponse, SummaryResponse, SummaryRefreshResponse

__all__ = [
    "AnalyzeRequest",
    "PostResult",
    "IngestResponse",
    "EntityResult",
    "TextAnalyzeResponse",
    "QueryRequest",
    "QuerySource",
    "QuerySummary",
    "QueryResponse",
    "QueryHistoryItem",
    "QueryHistoryResponse",
    "JobCreate",
    "JobQueuedResponse",
    "JobResponse",
    "JobListResponse",
    "SummaryRowResponse",
    "SummaryResponse",
    "SummaryRefreshResponse",
]
