"""采集与汇总刷新任务"""
import asyncio
import logging

from celery import shared_task

from burnbook.database import SessionLocal
from burnbook.exceptions import PersistenceError
from burnbook.services.ingestion import IngestionOrchestrator
from burnbook.services.persistence import SentimentRepository
from burnbook.services.summary import SummaryAggregator
from burnbook.workers.celery_app import celery_app  # noqa: F401

logger = logging.getLogger(__name__)


def _run_ingestion_sync(url: str, job_id: str):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(IngestionOrchestrator().run(url, job_id=job_id))
    finally:
        loop.close()


@shared_task(bind=True)
def run_ingestion_job(self, job_id: str):
    """执行一个已排队的采集任务

    任务状态全部记录在 ingestion_jobs 行上，这里不做重试：
    失败的任务已是终态。
    """
    db = SessionLocal()
    try:
        job = SentimentRepository(db).get_job(job_id)
        if not job:
            logger.warning(f"采集任务不存在: {job_id}")
            return {"error": "Job not found"}
        url = job.url
    finally:
        db.close()

    report = _run_ingestion_sync(url, job_id)
    return {
        "job_id": report.job_id,
        "success": report.success,
        "posts_found": report.posts_found,
        "posts_analyzed": report.posts_analyzed,
        "error": report.error,
    }


@shared_task
def refresh_sentiment_summary():
    """重新计算情感汇总表"""
    db = SessionLocal()
    try:
        count = SummaryAggregator(db).refresh()
        return {"entities": count}
    except PersistenceError as e:
        logger.error(f"刷新情感汇总失败: {e}")
        return {"error": str(e)}
    finally:
        db.close()
