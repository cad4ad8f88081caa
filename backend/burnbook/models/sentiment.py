"""情感分析结果与汇总模型"""
import enum
import uuid

from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Enum, JSON, ForeignKey, Uuid, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from burnbook.database import Base
from burnbook.models.entity import EntityType
from burnbook.utils.timeutils import utcnow


class SentimentLabel(str, enum.Enum):
    """情感标签枚举"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    MIXED = "mixed"


class SentimentRecord(Base):
    """每个 (帖子, 实体) 至多一条情感判定"""
    __tablename__ = "sentiment_analysis"
    __table_args__ = (
        UniqueConstraint("post_id", "entity_id", name="uq_sentiment_post_entity"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id = Column(Uuid(as_uuid=True), ForeignKey("reddit_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_id = Column(Uuid(as_uuid=True), ForeignKey("entities.id", ondelete="CASCADE"), nullable=False, index=True)

    sentiment = Column(Enum(SentimentLabel), nullable=False)
    confidence = Column(Float, nullable=False)
    sentiment_score = Column(Float, nullable=False)
    key_phrases = Column(JSON, default=list)
    analysis_metadata = Column(JSON, default=dict)

    analyzed_at = Column(DateTime, default=utcnow, index=True)

    post = relationship("Post", back_populates="sentiments")
    entity = relationship("Entity", back_populates="sentiments")


class SentimentSummary(Base):
    """实体情感汇总表（由 SentimentRecord 重新计算得到，不直接写入）"""
    __tablename__ = "sentiment_summary"

    entity_id = Column(Uuid(as_uuid=True), ForeignKey("entities.id", ondelete="CASCADE"), primary_key=True)
    entity_name = Column(String(255), nullable=False)
    entity_type = Column(Enum(EntityType), nullable=False, index=True)

    total_mentions = Column(Integer, nullable=False, default=0)
    positive_count = Column(Integer, nullable=False, default=0)
    negative_count = Column(Integer, nullable=False, default=0)
    neutral_count = Column(Integer, nullable=False, default=0)
    mixed_count = Column(Integer, nullable=False, default=0)
    avg_sentiment_score = Column(Float, nullable=False, default=0.0)
    avg_confidence = Column(Float, nullable=False, default=0.0)

    refreshed_at = Column(DateTime, default=utcnow)
