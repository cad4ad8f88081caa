"""采集分析编排

单个任务内按抓取顺序逐条处理帖子：文本构建 -> 情感分类 + 实体抽取 ->
实体名规范化 -> 持久化。单条帖子或单个实体的失败只影响自身，只有抓取级
错误会让整个任务失败。任务失败记录在 ingestion_jobs 行上，不向外抛出。
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from burnbook.analyzers import (
    EntityExtractor,
    ExtractedEntity,
    FallbackEntityExtractor,
    FallbackSentimentClassifier,
    SentimentClassifier,
    SentimentScores,
    build_analysis_text,
    normalize_entity_name,
)
from burnbook.collectors import RedditFetcher
from burnbook.collectors.base import BaseFetcher, FetchedPost
from burnbook.config import get_settings
from burnbook.database import SessionLocal
from burnbook.exceptions import (
    FetchFailed,
    InvalidJobTransition,
    InvalidUrl,
    NoPostsFound,
    PersistenceError,
    RateLimited,
)
from burnbook.models import IngestionJob
from burnbook.services.persistence import SentimentRepository
from burnbook.services.summary import SummaryAggregator
from burnbook.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Ingestion cancelled"

# IngestionReport.error_kind
ERROR_INVALID_URL = "invalid_url"
ERROR_JOB_CREATION = "job_creation"
ERROR_JOB_NOT_FOUND = "job_not_found"
ERROR_RATE_LIMITED = "rate_limited"
ERROR_FETCH_FAILED = "fetch_failed"
ERROR_NO_POSTS = "no_posts"
ERROR_CANCELLED = "cancelled"
ERROR_PERSISTENCE = "persistence"


@dataclass
class PostOutcome:
    """单条帖子的处理结果: ok / skipped / failed"""
    post_id: str
    status: str
    sentiment: Optional[str] = None
    confidence: Optional[float] = None
    entities: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class IngestionReport:
    success: bool
    job_id: Optional[str] = None
    posts_found: int = 0
    posts_analyzed: int = 0
    outcomes: List[PostOutcome] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @property
    def results(self) -> List[PostOutcome]:
        """实际完成分析的帖子，按分析顺序"""
        return [o for o in self.outcomes if o.status == "ok"]


@dataclass
class TextAnalysis:
    scores: SentimentScores
    entities: List[ExtractedEntity] = field(default_factory=list)


class IngestionOrchestrator:
    """驱动 抓取 -> 分析 -> 持久化 -> 汇总刷新 的完整流程"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        fetcher: Optional[BaseFetcher] = None,
        classifier: Optional[SentimentClassifier] = None,
        extractor: Optional[EntityExtractor] = None,
        min_text_length: Optional[int] = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory
        self.fetcher = fetcher or RedditFetcher()
        self.classifier = classifier or FallbackSentimentClassifier()
        self.extractor = extractor or FallbackEntityExtractor()
        self.min_text_length = min_text_length if min_text_length is not None else settings.min_text_length

    async def analyze_text(self, text: str) -> TextAnalysis:
        """分析一段文本，不写库"""
        scores = await self.classifier.classify(text)
        entities = await self.extractor.extract(text)
        return TextAnalysis(scores=scores, entities=entities)

    async def run(
        self,
        url: str,
        job_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> IngestionReport:
        db = self.session_factory()
        try:
            return await self._run(db, url, job_id, cancel_event)
        finally:
            db.close()

    async def _run(
        self,
        db: Session,
        url: str,
        job_id: Optional[str],
        cancel_event: Optional[asyncio.Event],
    ) -> IngestionReport:
        repo = SentimentRepository(db)
        url = (url or "").strip()

        # 1. 准备任务
        try:
            if job_id:
                job = repo.get_job(job_id)
                if job is None:
                    return IngestionReport(
                        success=False,
                        job_id=str(job_id),
                        error=f"Job not found: {job_id}",
                        error_kind=ERROR_JOB_NOT_FOUND,
                    )
            else:
                job = None

            if not self.fetcher.is_supported_url(url):
                error = InvalidUrl(url)
                logger.warning(f"无效的Reddit URL: {url}")
                if job is not None:
                    self._fail_job(repo, job, str(error))
                return IngestionReport(
                    success=False,
                    job_id=str(job.id) if job is not None else None,
                    error=str(error),
                    error_kind=ERROR_INVALID_URL,
                )

            if job is None:
                job = repo.create_job(url)
            repo.start_job(job)
        except (PersistenceError, InvalidJobTransition) as e:
            logger.error(f"创建/启动采集任务失败: {e}")
            return IngestionReport(
                success=False,
                job_id=str(job_id) if job_id else None,
                error=f"Failed to create job: {e}",
                error_kind=ERROR_JOB_CREATION,
            )

        report = IngestionReport(success=False, job_id=str(job.id))
        logger.info(f"采集任务 {job.id} 开始: {url}")

        # 2. 抓取
        try:
            posts = await self.fetcher.fetch(url)
        except RateLimited as e:
            return self._abort(repo, job, report, str(e), ERROR_RATE_LIMITED)
        except FetchFailed as e:
            return self._abort(repo, job, report, str(e), ERROR_FETCH_FAILED)
        except Exception as e:
            logger.exception(f"采集任务 {job.id} 抓取时出现未预期错误")
            return self._abort(repo, job, report, f"Fetch failed: {type(e).__name__}: {e}", ERROR_FETCH_FAILED)

        if not posts:
            return self._abort(repo, job, report, str(NoPostsFound(url)), ERROR_NO_POSTS)

        report.posts_found = len(posts)
        try:
            repo.set_posts_found(job, len(posts))
        except PersistenceError as e:
            return self._abort(repo, job, report, f"Failed to record posts found: {e}", ERROR_PERSISTENCE)

        # 3. 逐条分析
        for post in posts:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"采集任务 {job.id} 已取消，已分析 {report.posts_analyzed} 条")
                return self._abort(repo, job, report, CANCELLED_MESSAGE, ERROR_CANCELLED)

            outcome = await self._process_post(repo, job, post)
            report.outcomes.append(outcome)
            if outcome.status == "ok":
                report.posts_analyzed += 1

        # 4. 完成
        try:
            repo.complete_job(job)
        except (PersistenceError, InvalidJobTransition) as e:
            logger.error(f"任务 {job.id} 标记完成失败: {e}")
            report.error = str(e)
            report.error_kind = ERROR_PERSISTENCE
            return report

        report.success = True
        logger.info(
            f"采集任务 {job.id} 完成: 抓取 {report.posts_found} 条，分析 {report.posts_analyzed} 条"
        )

        try:
            SummaryAggregator(db).refresh()
        except PersistenceError as e:
            logger.warning(f"刷新情感汇总失败（数据仍有效，等待下次刷新）: {e}")

        return report

    async def _process_post(
        self,
        repo: SentimentRepository,
        job: IngestionJob,
        post: FetchedPost,
    ) -> PostOutcome:
        text = build_analysis_text(post, self.min_text_length)
        if text is None:
            return PostOutcome(post_id=post.source_id, status="skipped")

        try:
            scores = await self.classifier.classify(text)
            entities = await self.extractor.extract(text)
            post_pk = repo.upsert_post(post)

            entity_names = []
            for entity in entities:
                normalized = normalize_entity_name(entity.name)
                if not normalized:
                    logger.warning(f"实体名规范化后为空，跳过: {entity.name!r}")
                    continue
                try:
                    entity_pk = repo.upsert_entity(entity.name, normalized, entity.type)
                    repo.upsert_sentiment(post_pk, entity_pk, scores)
                except PersistenceError as e:
                    logger.error(f"保存实体 {entity.name} 失败（帖子 {post.source_id}）: {e}")
                    continue
                entity_names.append(entity.name)

            repo.increment_posts_analyzed(job)
        except Exception as e:
            logger.error(f"分析帖子 {post.source_id} 失败: {type(e).__name__}: {e}")
            return PostOutcome(post_id=post.source_id, status="failed", error=str(e))

        return PostOutcome(
            post_id=post.source_id,
            status="ok",
            sentiment=scores.sentiment,
            confidence=scores.confidence,
            entities=entity_names,
        )

    def _abort(
        self,
        repo: SentimentRepository,
        job: IngestionJob,
        report: IngestionReport,
        message: str,
        kind: str,
    ) -> IngestionReport:
        logger.error(f"采集任务 {job.id} 失败: {message}")
        self._fail_job(repo, job, message)
        report.success = False
        report.error = message
        report.error_kind = kind
        return report

    def _fail_job(self, repo: SentimentRepository, job: IngestionJob, message: str) -> None:
        try:
            repo.fail_job(job, message)
        except (PersistenceError, InvalidJobTransition) as e:
            logger.error(f"任务 {job.id} 标记失败时出错: {e}")

    def recover_interrupted_jobs(self, stale_after: Optional[timedelta] = None) -> int:
        """服务重启时把已失去执行者的 processing 任务标记为失败"""
        if stale_after is None:
            stale_after = timedelta(minutes=get_settings().job_stale_minutes)
        db = self.session_factory()
        try:
            count = SentimentRepository(db).fail_interrupted_jobs(utcnow() - stale_after)
        finally:
            db.close()
        if count:
            logger.warning(f"已将 {count} 个中断的采集任务标记为失败")
        return count
