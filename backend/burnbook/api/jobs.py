"""采集任务API"""
import logging
from uuid import UUID

from celery.exceptions import CeleryError
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session

from burnbook.collectors import validate_reddit_url
from burnbook.database import get_db
from burnbook.exceptions import InvalidJobTransition, InvalidUrl, PersistenceError
from burnbook.models import IngestionJob
from burnbook.schemas import JobCreate, JobListResponse, JobQueuedResponse, JobResponse, IngestResponse
from burnbook.services.persistence import SentimentRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(job: IngestionJob) -> JobResponse:
    return JobResponse(
        job_id=job.id,
        url=job.url,
        status=job.status.value,
        posts_found=job.posts_found,
        posts_analyzed=job.posts_analyzed,
        error_message=job.error_message,
        started_at=job.started_at,
        completed_at=job.completed_at,
        created_at=job.created_at,
    )


@router.post("", response_model=JobQueuedResponse)
async def queue_job(job_data: JobCreate, db: Session = Depends(get_db)):
    """创建采集任务并投递给 Celery Worker"""
    url = job_data.url.strip()
    if not validate_reddit_url(url):
        body = IngestResponse(success=False, error=str(InvalidUrl(url)))
        return JSONResponse(status_code=400, content=body.model_dump(mode="json", by_alias=True, exclude_none=True))

    repo = SentimentRepository(db)
    try:
        job = repo.create_job(url)
    except PersistenceError as e:
        logger.error(f"创建采集任务失败: {e}")
        body = IngestResponse(success=False, error=f"Failed to create job: {e}")
        return JSONResponse(status_code=500, content=body.model_dump(mode="json", by_alias=True, exclude_none=True))

    from burnbook.workers.ingest_tasks import run_ingestion_job
    try:
        run_ingestion_job.delay(str(job.id))
    except (CeleryError, OperationalError) as e:
        logger.error(f"投递采集任务失败: {e}")
        try:
            repo.fail_job(job, f"Failed to queue job: {e}")
        except (PersistenceError, InvalidJobTransition) as fail_error:
            logger.error(f"任务 {job.id} 标记失败时出错: {fail_error}")
        raise HTTPException(status_code=503, detail="Task queue unavailable")

    return JobQueuedResponse(job_id=job.id, status=job.status.value)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """任务列表（按时间倒序）"""
    jobs = SentimentRepository(db).list_jobs(limit=page_size, offset=(page - 1) * page_size)
    return JobListResponse(
        page=page,
        page_size=page_size,
        data=[_to_response(job) for job in jobs],
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: UUID, db: Session = Depends(get_db)):
    """查询任务状态"""
    job = SentimentRepository(db).get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return _to_response(job)
