"""实体情感汇总

sentiment_summary 只由 sentiment_analysis 重新计算得到：整表删除后重新插入，
不做增量修补。采集进行中调用也是安全的，结果最终收敛。
"""
import logging
from typing import List, Optional

from sqlalchemy import case, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from burnbook.analyzers.context import SummaryRow
from burnbook.exceptions import PersistenceError
from burnbook.models import (
    Entity,
    EntityType,
    SentimentLabel,
    SentimentRecord,
    SentimentSummary,
)
from burnbook.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def _count(label: SentimentLabel):
    return func.sum(case((SentimentRecord.sentiment == label, 1), else_=0))


def _type_value(entity_type) -> str:
    return entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)


class SummaryAggregator:
    """按实体聚合情感记录"""

    def __init__(self, db: Session):
        self.db = db

    def compute(self) -> List[SummaryRow]:
        """直接从情感记录聚合（不读汇总表）"""
        query = (
            self.db.query(
                Entity.id,
                Entity.name,
                Entity.entity_type,
                func.count(SentimentRecord.id),
                _count(SentimentLabel.POSITIVE),
                _count(SentimentLabel.NEGATIVE),
                _count(SentimentLabel.NEUTRAL),
                _count(SentimentLabel.MIXED),
                func.avg(SentimentRecord.sentiment_score),
                func.avg(SentimentRecord.confidence),
            )
            .join(SentimentRecord, SentimentRecord.entity_id == Entity.id)
            .group_by(Entity.id, Entity.name, Entity.entity_type)
        )

        rows = []
        for entity_id, name, entity_type, total, pos, neg, neu, mixed, avg_score, avg_conf in query.all():
            rows.append(SummaryRow(
                entity_id=entity_id,
                entity_name=name,
                entity_type=_type_value(entity_type),
                total_mentions=int(total or 0),
                positive_count=int(pos or 0),
                negative_count=int(neg or 0),
                neutral_count=int(neu or 0),
                mixed_count=int(mixed or 0),
                avg_sentiment_score=round(float(avg_score or 0.0), 4),
                avg_confidence=round(float(avg_conf or 0.0), 4),
            ))
        rows.sort(key=lambda r: r.total_mentions, reverse=True)
        return rows

    def refresh(self) -> int:
        """在一个事务内清空并重建汇总表，返回实体行数"""
        try:
            rows = self.compute()
            now = utcnow()
            self.db.execute(delete(SentimentSummary))
            self.db.add_all([
                SentimentSummary(
                    entity_id=r.entity_id,
                    entity_name=r.entity_name,
                    entity_type=EntityType(r.entity_type),
                    total_mentions=r.total_mentions,
                    positive_count=r.positive_count,
                    negative_count=r.negative_count,
                    neutral_count=r.neutral_count,
                    mixed_count=r.mixed_count,
                    avg_sentiment_score=r.avg_sentiment_score,
                    avg_confidence=r.avg_confidence,
                    refreshed_at=now,
                )
                for r in rows
            ])
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to refresh sentiment summary: {e}") from e

        logger.info(f"情感汇总已刷新: {len(rows)} 个实体")
        return len(rows)

    def read(
        self,
        entity_type: Optional[str] = None,
        entity_name: Optional[str] = None,
    ) -> List[SummaryRow]:
        """读取汇总表；类型精确匹配，名称大小写不敏感子串匹配"""
        query = self.db.query(SentimentSummary)
        if entity_type:
            try:
                query = query.filter(SentimentSummary.entity_type == EntityType(entity_type))
            except ValueError:
                return []
        if entity_name:
            query = query.filter(func.lower(SentimentSummary.entity_name).contains(entity_name.lower()))

        return [
            SummaryRow(
                entity_id=s.entity_id,
                entity_name=s.entity_name,
                entity_type=_type_value(s.entity_type),
                total_mentions=s.total_mentions,
                positive_count=s.positive_count,
                negative_count=s.negative_count,
                neutral_count=s.neutral_count,
                mixed_count=s.mixed_count,
                avg_sentiment_score=s.avg_sentiment_score,
                avg_confidence=s.avg_confidence,
            )
            for s in query.order_by(SentimentSummary.total_mentions.desc()).all()
        ]
