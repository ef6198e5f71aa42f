"""
Integration tests for the analytics admin endpoints.
"""

import pytest

from app.models.analytics import BATCH_ANALYZED, JOB_SUCCESS
from app.repositories.analytics import (
    AnalysisJobRepository,
    AnalyticsRepository,
    InsightRepository,
)
from app.repositories.order import OrderRepository

pytestmark = pytest.mark.anyio


async def open_batch(session, events=2):
    repo = AnalyticsRepository(session)
    for n in range(events):
        await repo.record_event(
            event_id=f"evt-{n}",
            event_type="add_to_cart",
            user_id="anon-1",
            session_id="sess-1",
            occurred_at=f"2025-01-01T12:0{n}:00+00:00",
            page="/products/kente-stole",
        )
    batch = await repo.get_or_create_open_batch()
    await session.commit()
    return batch.id


async def test_admin_only(client, user_headers):
    for path in (
        "/api/admin/batches",
        "/api/admin/jobs",
        "/api/admin/metrics",
        "/api/admin/dead-letter-queue",
        "/api/admin/dashboard",
        "/api/insights",
    ):
        response = await client.get(path, headers=user_headers)
        assert response.status_code == 403, path


async def test_analyze_unknown_batch(client, admin_headers):
    response = await client.post("/api/admin/batches/nope/analyze", headers=admin_headers)
    assert response.status_code == 404


async def test_analyze_empty_batch(client, admin_headers, session):
    batch_id = await open_batch(session, events=0)

    response = await client.post(f"/api/admin/batches/{batch_id}/analyze", headers=admin_headers)

    assert response.status_code == 400
    assert "Current state: ARCHIVED" in response.json()["detail"]


async def test_analyze_then_conflict(client, admin_headers, session):
    batch_id = await open_batch(session)

    created = await client.post(f"/api/admin/batches/{batch_id}/analyze", headers=admin_headers)
    assert created.status_code == 202
    body = created.json()
    assert body["message"] == "Analysis job created"
    assert body["job"]["trigger_type"] == "MANUAL"
    assert body["job"]["status"] == "PENDING"

    again = await client.post(f"/api/admin/batches/{batch_id}/analyze", headers=admin_headers)
    assert again.status_code == 409
    assert again.json()["jobId"] == body["jobId"]

    listing = await client.get("/api/admin/batches", headers=admin_headers)
    batch = listing.json()["batches"][0]
    assert batch["id"] == batch_id
    assert batch["status"] == "SEALED"
    assert batch["active_job"]["id"] == body["jobId"]


async def test_analyze_already_analyzed(client, admin_headers, session):
    batch_id = await open_batch(session)
    batches = AnalyticsRepository(session)
    batch = await batches.get_batch(batch_id)
    await batches.seal_batch(batch)
    job = await AnalysisJobRepository(session).create_job(batch_id, trigger_type="SCHEDULED", max_attempts=3)
    job.status = JOB_SUCCESS
    batch.status = BATCH_ANALYZED
    await session.commit()

    response = await client.post(f"/api/admin/batches/{batch_id}/analyze", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "message": "Batch already analyzed",
        "jobId": job.id,
        "job": response.json()["job"],
    }


async def test_list_batches_paginates(client, admin_headers, session):
    await open_batch(session)

    response = await client.get("/api/admin/batches", params={"limit": 1}, headers=admin_headers)

    assert response.json()["pagination"] == {"total": 1, "page": 1, "limit": 1, "totalPages": 1}


async def test_list_jobs(client, admin_headers, session):
    batch_id = await open_batch(session)
    await client.post(f"/api/admin/batches/{batch_id}/analyze", headers=admin_headers)

    response = await client.get("/api/admin/jobs", headers=admin_headers)

    assert response.status_code == 200
    assert [j["batch_id"] for j in response.json()["jobs"]] == [batch_id]
    assert response.json()["pagination"]["total"] == 1


async def test_metrics(client, admin_headers, session):
    await open_batch(session)

    response = await client.get("/api/admin/metrics", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["batches"]["open"] == 1
    assert body["batches"]["total_events"] == 2
    assert body["jobs"]["pending"] == 0
    assert set(body) >= {"jobs", "batches", "performance", "circuit_breaker", "dead_letter_queue"}


async def test_insights(client, admin_headers, session):
    repo = InsightRepository(session)
    for n in range(3):
        await repo.create_insight(
            summary=f"Shoppers browse kente {n}",
            confidence=0.8,
            patterns=["cart abandonment"],
            event_count=10,
        )
    await session.commit()

    response = await client.get("/api/insights", params={"limit": 2}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert len(body["insights"]) == 2
    assert body["insights"][0]["patterns"] == ["cart abandonment"]
    assert body["pagination"] == {"total": 3, "limit": 2, "offset": 0, "hasMore": True}


async def test_dead_letter_queue(client, admin_headers, session):
    batch_id = await open_batch(session)
    jobs = AnalysisJobRepository(session)
    job = await jobs.create_job(batch_id)
    job.attempt_count = 5
    await jobs.dead_letter(job, "AI provider unavailable")
    await session.commit()

    response = await client.get("/api/admin/dead-letter-queue", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"total": 1, "page": 1, "limit": 50, "totalPages": 1}
    entry = body["jobs"][0]
    assert entry["job_id"] == job.id
    assert entry["batch_id"] == batch_id
    assert entry["attempts"] == 5
    assert entry["error"] == "AI provider unavailable"


async def test_dead_letter_queue_rejects_bad_paging(client, admin_headers):
    response = await client.get(
        "/api/admin/dead-letter-queue", params={"limit": 500}, headers=admin_headers
    )
    assert response.status_code == 422


async def test_dashboard_empty_store(client, admin_headers):
    response = await client.get("/api/admin/dashboard", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "totalProducts": 0,
        "discountedProducts": 0,
        "totalOrders": 0,
        "totalRevenue": 0.0,
        "activeVisitors": 0,
        "pageViewsPerMin": 0.0,
    }


async def test_dashboard(client, admin_headers, session, products):
    orders = OrderRepository(session)
    for total in (200.0, 135.5):
        await orders.create_order(
            customer_name="Ama Owusu",
            email="ama@example.com",
            phone="+233200000000",
            address="12 Adum Road, Kumasi",
            total_amount=total,
            items=[],
        )
    events = AnalyticsRepository(session)
    for n, user in enumerate(["anon-1", "anon-1", "anon-2"]):
        await events.record_event(
            event_id=f"view-{n}",
            event_type="page_view",
            user_id=user,
            session_id=f"sess-{user}",
            occurred_at="2025-01-01T12:00:00+00:00",
            page="/products",
        )
    await session.commit()

    response = await client.get("/api/admin/dashboard", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {
        "totalProducts": 3,
        "discountedProducts": 1,
        "totalOrders": 2,
        "totalRevenue": 335.5,
        "activeVisitors": 2,
        "pageViewsPerMin": 0.1,
    }
