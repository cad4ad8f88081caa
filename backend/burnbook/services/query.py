"""自然语言问答

上下文与问题文本无关：按实体过滤条件读取汇总行和最近分析的情感记录，
再交给问答生成器（LLM 优先，模板兜底）。
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from burnbook.analyzers import AnswerGenerator, FallbackAnswerGenerator
from burnbook.analyzers.context import AggregateStats, QueryContext, SampleRecord
from burnbook.config import get_settings
from burnbook.database import SessionLocal
from burnbook.exceptions import OperationCancelled, PersistenceError
from burnbook.models import Entity, EntityType, Post, SentimentRecord
from burnbook.services.persistence import SentimentRepository
from burnbook.services.summary import SummaryAggregator

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 150


@dataclass
class SourceRef:
    post_id: str
    title: Optional[str]
    snippet: str
    sentiment: str


@dataclass
class QueryResult:
    answer: str
    sources: List[SourceRef] = field(default_factory=list)
    summary: AggregateStats = field(default_factory=AggregateStats)
    response_time_ms: int = 0


def make_snippet(record: SampleRecord, length: int = SNIPPET_LENGTH) -> str:
    text = (record.body or record.title or "").strip()
    if len(text) > length:
        return text[:length] + "..."
    return text


def _value(enum_or_str) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


class ContextSelector:
    """读取问答所需的汇总与样本记录"""

    def __init__(self, db: Session, sample_size: int = 20):
        self.db = db
        self.sample_size = sample_size

    def select(
        self,
        entity_type: Optional[str] = None,
        entity_name: Optional[str] = None,
    ) -> QueryContext:
        try:
            summary = SummaryAggregator(self.db).read(entity_type, entity_name)
            samples = self._recent_samples(entity_type, entity_name)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to load query context: {e}") from e
        return QueryContext(summary=summary, samples=samples)

    def _recent_samples(
        self,
        entity_type: Optional[str],
        entity_name: Optional[str],
    ) -> List[SampleRecord]:
        query = (
            self.db.query(SentimentRecord, Post, Entity)
            .join(Post, SentimentRecord.post_id == Post.id)
            .join(Entity, SentimentRecord.entity_id == Entity.id)
        )
        if entity_type:
            try:
                query = query.filter(Entity.entity_type == EntityType(entity_type))
            except ValueError:
                return []
        if entity_name:
            query = query.filter(func.lower(Entity.name).contains(entity_name.lower()))

        rows = query.order_by(SentimentRecord.analyzed_at.desc()).limit(self.sample_size).all()
        return [
            SampleRecord(
                post_id=post.reddit_id,
                entity_name=entity.name,
                entity_type=_value(entity.entity_type),
                sentiment=_value(record.sentiment),
                sentiment_score=record.sentiment_score,
                confidence=record.confidence,
                title=post.title,
                body=post.body,
                subreddit=post.subreddit,
                analyzed_at=record.analyzed_at,
            )
            for record, post, entity in rows
        ]


class QueryAnswerer:
    """问答入口"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        generator: Optional[AnswerGenerator] = None,
        sample_size: Optional[int] = None,
        max_sources: Optional[int] = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory
        self.generator = generator or FallbackAnswerGenerator()
        self.sample_size = sample_size or settings.query_sample_size
        self.max_sources = max_sources or settings.query_max_sources

    async def answer(
        self,
        question: str,
        entity_type: Optional[str] = None,
        entity_name: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> QueryResult:
        start = time.perf_counter()
        db = self.session_factory()
        try:
            try:
                context = ContextSelector(db, self.sample_size).select(entity_type, entity_name)
            except PersistenceError as e:
                logger.error(f"读取问答上下文失败，使用空上下文回答: {e}")
                context = QueryContext()

            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelled("Query cancelled")

            answer = await self.generator.generate(question, context)

            sources = [
                SourceRef(
                    post_id=record.post_id,
                    title=record.title,
                    snippet=make_snippet(record),
                    sentiment=record.sentiment,
                )
                for record in context.samples[:self.max_sources]
            ]
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            result = QueryResult(
                answer=answer,
                sources=sources,
                summary=context.stats(),
                response_time_ms=elapsed_ms,
            )

            try:
                SentimentRepository(db).log_query(
                    question=question,
                    answer=answer,
                    response_time_ms=elapsed_ms,
                    context_entities=[s.entity_name for s in context.summary],
                    sources=[s.post_id for s in sources],
                )
            except PersistenceError as e:
                logger.warning(f"记录查询日志失败: {e}")

            logger.info(f"问答完成，耗时 {elapsed_ms}ms，样本 {len(context.samples)} 条")
            return result
        finally:
            db.close()
