"""HTTP 接口测试"""
import uuid

import pytest
from celery.exceptions import CeleryError
from fastapi.testclient import TestClient

from burnbook.analyzers import KeywordEntityExtractor, KeywordSentimentClassifier, TemplateAnswerGenerator
from burnbook.api.deps import get_orchestrator, get_query_answerer
from burnbook.database import get_db
from burnbook.exceptions import PersistenceError
from burnbook.main import app
from burnbook.services.ingestion import IngestionOrchestrator
from burnbook.services.persistence import SentimentRepository
from burnbook.services.query import QueryAnswerer
from burnbook.workers import ingest_tasks
from fakes import FakeFetcher, make_post

THREAD_URL = "https://www.reddit.com/r/ems/comments/abc123/elite_thoughts/"

POSTS = [
    make_post("p1", title="Elite is great", body="Charting calls is quick"),
    make_post("p2", title="ok", kind="comment"),
    make_post("p3", body="Honestly Elite is great for charting calls", kind="comment"),
]


@pytest.fixture
def client(session_factory):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_orchestrator] = lambda: IngestionOrchestrator(
        session_factory=session_factory,
        fetcher=FakeFetcher(POSTS),
        classifier=KeywordSentimentClassifier(),
        extractor=KeywordEntityExtractor(),
    )
    app.dependency_overrides[get_query_answerer] = lambda: QueryAnswerer(
        session_factory=session_factory,
        generator=TemplateAnswerGenerator(),
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeTask:
    def __init__(self):
        self.queued = []

    def delay(self, job_id):
        self.queued.append(job_id)


def test_analyze_requires_url_or_text(client):
    response = client.post("/api/v1/analyze", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please provide either a url or text to analyze"


def test_analyze_invalid_url_returns_structured_400(client):
    response = client.post("/api/v1/analyze", json={"url": "https://example.com/r/ems"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "valid Reddit URL" in body["error"]
    assert "jobId" not in body


def test_analyze_url(client):
    response = client.post("/api/v1/analyze", json={"url": THREAD_URL})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["postsFound"] == 3
    assert body["postsAnalyzed"] == 2
    assert [r["postId"] for r in body["results"]] == ["p1", "p3"]
    assert body["results"][0]["sentiment"] == "positive"
    assert body["results"][0]["entities"] == ["Elite"]
    uuid.UUID(body["jobId"])


def test_analyze_job_creation_failure_returns_500(client, monkeypatch):
    def broken_create(self, url):
        raise PersistenceError("database is locked")

    monkeypatch.setattr(SentimentRepository, "create_job", broken_create)
    response = client.post("/api/v1/analyze", json={"url": THREAD_URL})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "Failed to create job" in body["error"]


def test_analyze_text(client):
    response = client.post("/api/v1/analyze", json={"text": "Elite is great for charting calls"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["sentiment"] == "positive"
    assert body["sentimentScore"] == 0.2
    assert isinstance(body["keyPhrases"], list)
    assert body["entities"] == [{"name": "Elite", "type": "product", "confidence": 0.85}]


def test_query_requires_question(client):
    for payload in ({}, {"question": "   "}):
        response = client.post("/api/v1/query", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a question"


def test_query_on_empty_store(client):
    response = client.post("/api/v1/query", json={"question": "What do users think about the mobile app?"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["answer"]
    assert body["sources"] == []
    assert body["summary"] == {
        "totalMentions": 0,
        "positivePercent": 0,
        "negativePercent": 0,
        "neutralPercent": 0,
    }
    assert "responseTimeMs" in body

    history = client.get("/api/v1/query/history").json()["data"]
    assert history[0]["question"] == "What do users think about the mobile app?"


def test_summary_after_ingestion(client):
    client.post("/api/v1/analyze", json={"url": THREAD_URL})

    rows = client.get("/api/v1/summary").json()["data"]
    assert rows[0]["entityName"] == "Elite"
    assert rows[0]["totalMentions"] == 2
    assert rows[0]["positiveCount"] == 2

    assert client.get("/api/v1/summary", params={"entity_type": "feature"}).json()["data"] == []
    assert client.post("/api/v1/summary/refresh").json() == {"entities": 1}


def test_queue_and_read_job(client, monkeypatch):
    fake_task = FakeTask()
    monkeypatch.setattr(ingest_tasks, "run_ingestion_job", fake_task)

    response = client.post("/api/v1/jobs", json={"url": THREAD_URL})
    assert response.status_code == 200
    queued = response.json()
    assert queued["status"] == "pending"
    assert fake_task.queued == [queued["jobId"]]

    job = client.get(f"/api/v1/jobs/{queued['jobId']}").json()
    assert job["url"] == THREAD_URL
    assert job["postsAnalyzed"] == 0

    listing = client.get("/api/v1/jobs").json()
    assert [j["jobId"] for j in listing["data"]] == [queued["jobId"]]

    assert client.get(f"/api/v1/jobs/{uuid.uuid4()}").status_code == 404


def test_queue_job_rejects_invalid_url(client):
    response = client.post("/api/v1/jobs", json={"url": "https://example.com"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_queue_failure_returns_503_when_job_cannot_be_failed(client, monkeypatch):
    class BrokenTask:
        def delay(self, job_id):
            raise CeleryError("broker unreachable")

    def broken_fail(self, job, message):
        raise PersistenceError("database is locked")

    monkeypatch.setattr(ingest_tasks, "run_ingestion_job", BrokenTask())
    monkeypatch.setattr(SentimentRepository, "fail_job", broken_fail)

    response = client.post("/api/v1/jobs", json={"url": THREAD_URL})

    assert response.status_code == 503
    assert response.json()["detail"] == "Task queue unavailable"
