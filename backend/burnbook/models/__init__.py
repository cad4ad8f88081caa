"""数据库模型"""
from burnbook.models.post import Post, PostKind
from burnbook.models.entity import Entity, EntityType
from burnbook.models.sentiment import SentimentRecord, SentimentLabel, SentimentSummary
from burnbook.models.ingestion_job import IngestionJob, JobStatus
from burnbook.models.query_log import QueryLog

__all__ = [
    "Post",
    "PostKind",
    "Entity",
    "EntityType",
    "SentimentRecord",
    "SentimentLabel",
    "SentimentSummary",
    "IngestionJob",
    "JobStatus",
    "QueryLog",
]
