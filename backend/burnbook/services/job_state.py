"""采集任务状态机

    pending ──► processing ──► completed
       │             │
       └─────────────┴──────► failed

completed / failed 为终态，不可再迁移。
"""
import logging
from typing import Dict, Set

from burnbook.exceptions import InvalidJobTransition
from burnbook.models import IngestionJob, JobStatus

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}

TERMINAL_STATES = frozenset([JobStatus.COMPLETED, JobStatus.FAILED])


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def transition(job: IngestionJob, target: JobStatus) -> None:
    """校验并修改任务状态（不提交）"""
    current = JobStatus(job.status)
    if not can_transition(current, target):
        raise InvalidJobTransition(current.value, target.value)
    job.status = target
    logger.debug(f"任务 {job.id} 状态: {current.value} -> {target.value}")
