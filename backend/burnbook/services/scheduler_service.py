"""APScheduler 调度服务 - 周期性刷新情感汇总"""
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import text
from sqlalchemy.engine import Connection

from burnbook.config import get_settings
from burnbook.database import engine

logger = logging.getLogger(__name__)
SCHEDULER_LOCK_KEY = 762934282
SUMMARY_REFRESH_JOB_ID = "sentiment_summary_refresh"


class SchedulerService:
    """
    调度服务 - 单例模式

    采集后的汇总刷新是尽力而为的，这里按固定间隔再刷新一次，
    保证汇总表最终与情感记录一致。多实例部署时通过
    PostgreSQL advisory lock 保证只有一个进程运行调度器。
    """

    _instance: Optional["SchedulerService"] = None
    _scheduler: Optional[BackgroundScheduler] = None
    _initialized: bool = False
    _lock_acquired: bool = False
    _lock_connection: Optional[Connection] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_instance(cls) -> "SchedulerService":
        """获取调度服务单例"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def init_scheduler(self):
        """初始化调度器（应在应用启动时调用）"""
        if self._initialized:
            logger.warning("Scheduler already initialized")
            return

        settings = get_settings()
        if not settings.scheduler_enabled:
            logger.info("Scheduler disabled by config; init skipped")
            return
        if not self._acquire_scheduler_lock(settings.database_url):
            logger.warning("Scheduler lock not acquired; skipping scheduler start")
            return

        job_defaults = {
            'coalesce': True,              # 错过的任务合并为一次执行
            'max_instances': 1,            # 同一任务最多同时运行1个实例
            'misfire_grace_time': 600,
        }

        self._scheduler = BackgroundScheduler(
            executors={'default': ThreadPoolExecutor(2)},
            job_defaults=job_defaults,
            timezone='UTC',
        )
        self._scheduler.add_job(
            func=trigger_summary_refresh,
            trigger=IntervalTrigger(minutes=settings.summary_refresh_minutes),
            id=SUMMARY_REFRESH_JOB_ID,
            replace_existing=True,
            name="Refresh sentiment summary",
        )

        self._scheduler.start()
        self._initialized = True
        logger.info(
            "APScheduler initialized, summary refresh every %sm", settings.summary_refresh_minutes
        )

    def shutdown(self, wait: bool = True):
        """关闭调度器"""
        if self._scheduler and self._initialized:
            self._scheduler.shutdown(wait=wait)
            self._initialized = False
            logger.info("APScheduler shut down")
        self._release_scheduler_lock()

    def _acquire_scheduler_lock(self, database_url: str) -> bool:
        if self._lock_connection:
            return True
        if not database_url.startswith("postgresql"):
            return True
        try:
            conn = engine.connect()
            result = conn.execute(
                text("SELECT pg_try_advisory_lock(:key)"),
                {"key": SCHEDULER_LOCK_KEY},
            ).scalar()
            self._lock_acquired = bool(result)
            if self._lock_acquired:
                self._lock_connection = conn
                return True
            conn.close()
            return False
        except Exception as e:
            logger.error(f"Failed to acquire scheduler lock: {e}")
            if self._lock_connection:
                self._lock_connection.close()
                self._lock_connection = None
            return False

    def _release_scheduler_lock(self):
        if not self._lock_acquired or not self._lock_connection:
            return
        try:
            self._lock_connection.execute(
                text("SELECT pg_advisory_unlock(:key)"),
                {"key": SCHEDULER_LOCK_KEY},
            )
        except Exception as e:
            logger.warning(f"Failed to release scheduler lock: {e}")
        finally:
            self._lock_connection.close()
            self._lock_connection = None
            self._lock_acquired = False

    def get_status(self) -> dict:
        """获取调度器状态"""
        next_run = None
        if self._scheduler:
            job = self._scheduler.get_job(SUMMARY_REFRESH_JOB_ID)
            next_run = job.next_run_time if job else None
        return {
            "initialized": self._initialized,
            "lock_acquired": self._lock_acquired,
            "next_summary_refresh": next_run,
        }


def trigger_summary_refresh():
    """APScheduler 触发的汇总刷新"""
    from burnbook.database import SessionLocal
    from burnbook.exceptions import PersistenceError
    from burnbook.services.summary import SummaryAggregator

    db = SessionLocal()
    try:
        SummaryAggregator(db).refresh()
    except PersistenceError as e:
        logger.error(f"定时刷新情感汇总失败: {e}")
    finally:
        db.close()
