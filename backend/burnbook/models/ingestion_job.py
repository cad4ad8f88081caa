"""采集任务模型"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Enum, Text, Uuid

from burnbook.database import Base
from burnbook.utils.timeutils import utcnow


class JobStatus(str, enum.Enum):
    """任务状态枚举"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class IngestionJob(Base):
    """采集分析任务表"""
    __tablename__ = "ingestion_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    url = Column(String(1000), nullable=False)

    status = Column(Enum(JobStatus), default=JobStatus.PENDING, nullable=False, index=True)
    posts_found = Column(Integer, default=0, nullable=False)
    posts_analyzed = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
