"""自然语言查询日志模型"""
import uuid

from sqlalchemy import Column, Integer, DateTime, Text, JSON, Uuid

from burnbook.database import Base
from burnbook.utils.timeutils import utcnow


class QueryLog(Base):
    """查询历史表"""
    __tablename__ = "nl_queries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=True)
    context_entities = Column(JSON, default=list)
    sources = Column(JSON, default=list)
    response_time_ms = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
