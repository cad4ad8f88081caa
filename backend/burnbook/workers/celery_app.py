"""Celery应用配置"""
from celery import Celery

from burnbook.config import get_settings

settings = get_settings()

celery_app = Celery(
    "burnbook",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "burnbook.workers.ingest_tasks",
    ],
)

# 硬超时与重启恢复的判定窗口一致，超时任务不会在恢复后继续写入
JOB_TIME_LIMIT = settings.job_stale_minutes * 60

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=JOB_TIME_LIMIT,
    task_soft_time_limit=max(JOB_TIME_LIMIT - 60, 60),
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    result_expires=3600,
    broker_connection_retry_on_startup=True,
    broker_transport_options={
        "visibility_timeout": JOB_TIME_LIMIT + 300,
    },
)

# 定时刷新汇总由 APScheduler 负责，不使用 Celery Beat
# 参见 burnbook/services/scheduler_service.py
