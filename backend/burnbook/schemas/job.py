"""采集任务相关的请求/响应模型"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from burnbook.schemas.base import CamelModel


class JobCreate(CamelModel):
    """排队采集任务请求"""
    url: str = Field(..., min_length=1, max_length=1000, description="Reddit URL")


class JobQueuedResponse(CamelModel):
    job_id: UUID
    status: str


class JobResponse(CamelModel):
    """任务状态响应"""
    job_id: UUID
    url: str
    status: str
    posts_found: int
    posts_analyzed: int
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime


class JobListResponse(CamelModel):
    page: int
    page_size: int
    data: List[JobResponse]
