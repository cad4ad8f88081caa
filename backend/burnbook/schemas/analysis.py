"""分析相关的请求/响应模型"""
from typing import List, Optional

from pydantic import Field

from burnbook.schemas.base import CamelModel


class AnalyzeRequest(CamelModel):
    """分析请求：url 与 text 二选一"""
    url: Optional[str] = Field(default=None, description="Reddit 社区/帖子/用户 URL")
    text: Optional[str] = Field(default=None, description="待分析的文本")

    class Config:
        json_schema_extra = {
            "example": {"url": "https://www.reddit.com/r/ems/comments/abc123/elite_epcr/"}
        }


class PostResult(CamelModel):
    """单条帖子的分析结果"""
    post_id: str
    sentiment: str
    confidence: float
    entities: List[str] = []


class IngestResponse(CamelModel):
    """URL 采集分析响应"""
    success: bool
    job_id: Optional[str] = None
    posts_found: Optional[int] = None
    posts_analyzed: Optional[int] = None
    results: Optional[List[PostResult]] = None
    error: Optional[str] = None


class EntityResult(CamelModel):
    name: str
    type: str
    confidence: float


class TextAnalyzeResponse(CamelModel):
    """文本分析响应"""
    success: bool
    sentiment: Optional[str] = None
    confidence: Optional[float] = None
    sentiment_score: Optional[float] = None
    key_phrases: List[str] = []
    entities: List[EntityResult] = []
    error: Optional[str] = None
