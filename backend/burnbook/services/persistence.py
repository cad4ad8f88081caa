"""持久化层

帖子、实体、情感记录均以单条 INSERT ... ON CONFLICT DO UPDATE 写入，
按冲突键原子地覆盖；每次写入单独提交。任何数据库异常回滚后以
PersistenceError 抛出，由调用方决定影响范围。
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from burnbook.analyzers.sentiment import SentimentScores
from burnbook.collectors.base import FetchedPost
from burnbook.exceptions import PersistenceError
from burnbook.models import (
    Entity,
    EntityType,
    IngestionJob,
    JobStatus,
    Post,
    PostKind,
    QueryLog,
    SentimentLabel,
    SentimentRecord,
)
from burnbook.services.job_state import transition
from burnbook.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Interrupted by service restart"


class SentimentRepository:
    """对 posts / entities / sentiment_analysis / ingestion_jobs / nl_queries 的写入"""

    def __init__(self, db: Session):
        self.db = db

    def _insert(self, model):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(model)
        if dialect == "sqlite":
            return sqlite.insert(model)
        raise PersistenceError(f"Upsert is not supported on dialect: {dialect}")

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"{action} failed: {e}") from e

    # ========== 帖子 / 实体 / 情感 ==========

    def upsert_post(self, post: FetchedPost) -> UUID:
        values = {
            "reddit_id": post.source_id,
            "subreddit": post.subreddit or "",
            "title": post.title,
            "body": post.body,
            "author": post.author,
            "url": post.url,
            "post_type": PostKind(post.kind),
            "score": post.score,
            "num_comments": post.num_comments,
            "created_utc": post.created_at,
            "ingested_at": utcnow(),
        }
        stmt = self._insert(Post).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Post.reddit_id],
            set_={k: stmt.excluded[k] for k in values if k != "reddit_id"},
        ).returning(Post.id)
        return self._execute_returning(stmt, f"Upsert post {post.source_id}")

    def upsert_entity(self, name: str, normalized_name: str, entity_type: str) -> UUID:
        stmt = self._insert(Entity).values(
            name=name,
            normalized_name=normalized_name,
            entity_type=EntityType(entity_type),
        )
        # 已存在的实体保留首次出现的显示名
        stmt = stmt.on_conflict_do_update(
            index_elements=[Entity.normalized_name, Entity.entity_type],
            set_={"normalized_name": stmt.excluded.normalized_name},
        ).returning(Entity.id)
        return self._execute_returning(stmt, f"Upsert entity {normalized_name}/{entity_type}")

    def upsert_sentiment(self, post_id: UUID, entity_id: UUID, scores: SentimentScores) -> UUID:
        values = {
            "post_id": post_id,
            "entity_id": entity_id,
            "sentiment": SentimentLabel(scores.sentiment),
            "confidence": scores.confidence,
            "sentiment_score": scores.sentiment_score,
            "key_phrases": list(scores.key_phrases),
            "analysis_metadata": {"provider": scores.provider},
            "analyzed_at": utcnow(),
        }
        stmt = self._insert(SentimentRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SentimentRecord.post_id, SentimentRecord.entity_id],
            set_={k: stmt.excluded[k] for k in values if k not in ("post_id", "entity_id")},
        ).returning(SentimentRecord.id)
        return self._execute_returning(stmt, f"Upsert sentiment {post_id}/{entity_id}")

    def _execute_returning(self, stmt, action: str) -> UUID:
        try:
            row_id = self.db.execute(stmt).scalar_one()
            self.db.commit()
            return row_id
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"{action} failed: {e}") from e

    # ========== 任务 ==========

    def create_job(self, url: str) -> IngestionJob:
        job = IngestionJob(url=url, status=JobStatus.PENDING)
        try:
            self.db.add(job)
            self.db.commit()
            self.db.refresh(job)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to create job: {e}") from e
        return job

    def get_job(self, job_id) -> Optional[IngestionJob]:
        if not isinstance(job_id, UUID):
            try:
                job_id = UUID(str(job_id))
            except ValueError:
                return None
        try:
            return self.db.get(IngestionJob, job_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to load job {job_id}: {e}") from e

    def start_job(self, job: IngestionJob) -> None:
        transition(job, JobStatus.PROCESSING)
        job.started_at = utcnow()
        self._commit(f"Start job {job.id}")

    def set_posts_found(self, job: IngestionJob, count: int) -> None:
        job.posts_found = max(0, count)
        self._commit(f"Set posts_found on job {job.id}")

    def increment_posts_analyzed(self, job: IngestionJob) -> None:
        job.posts_analyzed = IngestionJob.posts_analyzed + 1
        self._commit(f"Increment posts_analyzed on job {job.id}")
        self.db.refresh(job)

    def complete_job(self, job: IngestionJob) -> None:
        transition(job, JobStatus.COMPLETED)
        job.completed_at = utcnow()
        self._commit(f"Complete job {job.id}")

    def fail_job(self, job: IngestionJob, message: str) -> None:
        transition(job, JobStatus.FAILED)
        job.error_message = message
        job.completed_at = utcnow()
        self._commit(f"Fail job {job.id}")

    def fail_interrupted_jobs(self, started_before: datetime) -> int:
        """将 started_before 之前开始且仍在 processing 的任务标记为失败

        pending 任务仍在队列中等待 worker，不做处理。
        """
        stmt = (
            update(IngestionJob)
            .where(IngestionJob.status == JobStatus.PROCESSING)
            .where(or_(IngestionJob.started_at.is_(None), IngestionJob.started_at < started_before))
            .values(
                status=JobStatus.FAILED,
                error_message=INTERRUPTED_MESSAGE,
                completed_at=utcnow(),
            )
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to recover interrupted jobs: {e}") from e
        return result.rowcount or 0

    def list_jobs(self, limit: int = 20, offset: int = 0) -> List[IngestionJob]:
        return (
            self.db.query(IngestionJob)
            .order_by(IngestionJob.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    # ========== 查询日志 ==========

    def log_query(
        self,
        question: str,
        answer: str,
        response_time_ms: int,
        context_entities: Optional[List[str]] = None,
        sources: Optional[List[str]] = None,
    ) -> None:
        entry = QueryLog(
            question=question,
            answer=answer,
            response_time_ms=response_time_ms,
            context_entities=context_entities or [],
            sources=sources or [],
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to log query: {e}") from e

    def recent_queries(self, limit: int = 20) -> List[QueryLog]:
        return (
            self.db.query(QueryLog)
            .order_by(QueryLog.created_at.desc())
            .limit(limit)
            .all()
        )
