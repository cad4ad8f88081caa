"""FastAPI应用入口"""
import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from burnbook.config import get_settings
from burnbook.api import analyze, jobs, query, summary
from burnbook.exceptions import PersistenceError
from burnbook.services.ingestion import IngestionOrchestrator
from burnbook.services.scheduler_service import SchedulerService

settings = get_settings()
logger = logging.getLogger(__name__)

# 配置日志
def setup_logging():
    log_dir = "logs"
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    # 1. 控制台处理器
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # 2. 文件轮转处理器 (10MB * 5 backups)
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=10*1024*1024,
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        handlers=[console_handler, file_handler]
    )

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理

    启动时：
    1. 将超过 job_stale_minutes 仍处于 processing 的任务标记为失败（pending 任务留给 worker）
    2. 初始化 APScheduler（周期刷新情感汇总）

    关闭时：
    1. 优雅关闭 APScheduler
    """
    # ========== 启动逻辑 ==========
    logger.info("Starting application...")

    try:
        IngestionOrchestrator().recover_interrupted_jobs()
    except PersistenceError as e:
        logger.error(f"Error recovering interrupted jobs: {e}")

    scheduler = SchedulerService.get_instance()
    if settings.scheduler_enabled:
        scheduler.init_scheduler()
    else:
        logger.info("Scheduler disabled by config; skipping init")

    logger.info("Application startup complete")

    yield  # 应用运行中

    # ========== 关闭逻辑 ==========
    logger.info("Shutting down application...")

    if settings.scheduler_enabled:
        scheduler.shutdown(wait=True)

    logger.info("Application shutdown complete")


app = FastAPI(
    title="BurnBook",
    description="Reddit 情感分析与自然语言问答API",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# CORS配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # 使用 * 时必须为 False
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
@app.get("/api/v1/health")
async def health_check():
    """健康检查接口"""
    scheduler = SchedulerService.get_instance()

    return {
        "status": "healthy",
        "version": "1.0.0",
        "scheduler": {
            "scheduler_enabled": settings.scheduler_enabled,
            **scheduler.get_status(),
        }
    }


# 注册路由
app.include_router(analyze.router, prefix="/api/v1/analyze", tags=["分析"])
app.include_router(query.router, prefix="/api/v1/query", tags=["问答"])
app.include_router(jobs.router, prefix="/api/v1/jobs", tags=["任务管理"])
app.include_router(summary.router, prefix="/api/v1/summary", tags=["情感汇总"])
