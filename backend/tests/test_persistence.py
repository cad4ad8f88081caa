"""持久化层测试：幂等写入与任务状态机"""
from datetime import timedelta

import pytest

from burnbook.analyzers.sentiment import SentimentScores
from burnbook.exceptions import InvalidJobTransition
from burnbook.models import Entity, IngestionJob, JobStatus, Post, QueryLog, SentimentRecord
from burnbook.services.job_state import can_transition
from burnbook.services.persistence import INTERRUPTED_MESSAGE, SentimentRepository
from burnbook.utils.timeutils import utcnow
from fakes import make_post


def scores(sentiment="positive", score=0.2):
    return SentimentScores(
        sentiment=sentiment,
        confidence=0.5,
        sentiment_score=score,
        key_phrases=["great charting"],
        provider="keyword",
    )


def test_upsert_post_is_idempotent_and_overwrites(db):
    repo = SentimentRepository(db)
    first_id = repo.upsert_post(make_post("abc123", title="Elite", body="first body"))
    second_id = repo.upsert_post(make_post("abc123", title="Elite", body="edited body"))

    assert first_id == second_id
    assert db.query(Post).count() == 1
    assert db.query(Post).one().body == "edited body"


def test_upsert_entity_matches_identity_key(db):
    repo = SentimentRepository(db)
    a = repo.upsert_entity("Elite", "elite", "product")
    b = repo.upsert_entity("ELITE", "elite", "product")
    c = repo.upsert_entity("Elite", "elite", "feature")

    assert a == b
    assert a != c
    assert db.query(Entity).count() == 2
    assert db.get(Entity, a).name == "Elite"


def test_upsert_sentiment_one_row_per_post_entity(db):
    repo = SentimentRepository(db)
    post_id = repo.upsert_post(make_post("abc123", title="Elite is great"))
    entity_id = repo.upsert_entity("Elite", "elite", "product")

    repo.upsert_sentiment(post_id, entity_id, scores())
    repo.upsert_sentiment(post_id, entity_id, scores("negative", -0.4))

    records = db.query(SentimentRecord).all()
    assert len(records) == 1
    assert records[0].sentiment.value == "negative"
    assert records[0].sentiment_score == -0.4
    assert records[0].key_phrases == ["great charting"]
    assert records[0].analysis_metadata == {"provider": "keyword"}


def test_job_lifecycle(db):
    repo = SentimentRepository(db)
    job = repo.create_job("https://www.reddit.com/r/ems")
    assert job.status == JobStatus.PENDING

    repo.start_job(job)
    assert job.status == JobStatus.PROCESSING
    assert job.started_at is not None

    repo.set_posts_found(job, 3)
    repo.increment_posts_analyzed(job)
    repo.increment_posts_analyzed(job)
    repo.complete_job(job)

    stored = repo.get_job(str(job.id))
    assert stored.status == JobStatus.COMPLETED
    assert stored.posts_found == 3
    assert stored.posts_analyzed == 2
    assert stored.completed_at is not None


def test_job_state_machine_rejects_backward_transitions(db):
    repo = SentimentRepository(db)
    job = repo.create_job("https://www.reddit.com/r/ems")
    repo.start_job(job)
    repo.complete_job(job)

    with pytest.raises(InvalidJobTransition):
        repo.fail_job(job, "too late")
    with pytest.raises(InvalidJobTransition):
        repo.start_job(job)

    assert not can_transition(JobStatus.PROCESSING, JobStatus.PENDING)
    assert can_transition(JobStatus.PENDING, JobStatus.FAILED)


def test_get_job_with_malformed_id_returns_none(db):
    assert SentimentRepository(db).get_job("not-a-uuid") is None


def test_fail_interrupted_jobs(db):
    repo = SentimentRepository(db)
    pending = repo.create_job("https://www.reddit.com/r/ems")
    running = repo.create_job("https://www.reddit.com/r/paramedics")
    repo.start_job(running)
    done = repo.create_job("https://www.reddit.com/r/nursing")
    repo.start_job(done)
    repo.complete_job(done)

    assert repo.fail_interrupted_jobs(utcnow() - timedelta(minutes=30)) == 0
    assert repo.fail_interrupted_jobs(utcnow() + timedelta(seconds=1)) == 1

    db.expire_all()
    assert db.get(IngestionJob, pending.id).status == JobStatus.PENDING
    stored = db.get(IngestionJob, running.id)
    assert stored.status == JobStatus.FAILED
    assert stored.error_message == INTERRUPTED_MESSAGE
    assert db.get(IngestionJob, done.id).status == JobStatus.COMPLETED


def test_query_log(db):
    repo = SentimentRepository(db)
    repo.log_query("How is Elite?", "Fine.", 12, ["Elite"], ["abc123"])

    entries = repo.recent_queries(5)
    assert len(entries) == 1
    assert entries[0].context_entities == ["Elite"]
    assert db.query(QueryLog).one().response_time_ms == 12
