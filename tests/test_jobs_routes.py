"""Tests for job posting enforcement and job endpoints."""

from __future__ import annotations

from datetime import timedelta

from models import db
from models.job import Job
from utils.clock import utcnow

from conftest import auth_header, create_employer, create_user, get_subscription

JOB_PAYLOAD = {
    "title": "Front Desk Associate",
    "description": "Seasonal role at a beach resort",
    "location": "Ocean City, MD",
}


def test_job_posting_requires_capacity(app, client):
    """Employers without credits or unlimited posting cannot post."""

    with app.app_context():
        user_id = create_employer(job_credits=0)

    response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_header(app, user_id))

    assert response.status_code == 402
    payload = response.get_json()
    assert payload["error"] == "SUBSCRIPTION_LIMIT_REACHED"
    assert "request_id" in payload
    with app.app_context():
        assert Job.query.count() == 0


def test_job_posting_consumes_credit(app, client):
    with app.app_context():
        user_id = create_employer(job_credits=1)

    response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_header(app, user_id))

    assert response.status_code == 201
    job = response.get_json()
    assert job["status"] == "ACTIVE"
    assert job["expires_at"] is not None
    with app.app_context():
        subscription = get_subscription(user_id)
        assert subscription.job_credits == 0
        assert subscription.jobs_posted_count == 1
        assert Job.query.count() == 1

    again = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_header(app, user_id))
    assert again.status_code == 402


def test_job_posting_with_unlimited_keeps_credits(app, client):
    with app.app_context():
        user_id = create_employer(
            job_credits=2, unlimited_posting_end_date=utcnow() + timedelta(days=10)
        )

    for _ in range(3):
        response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_header(app, user_id))
        assert response.status_code == 201

    with app.app_context():
        subscription = get_subscription(user_id)
        assert subscription.job_credits == 2
        assert subscription.jobs_posted_count == 3


def test_job_posting_is_for_employers_only(app, client):
    with app.app_context():
        user_id = create_user("talent@example.com", role="professional").id

    response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_header(app, user_id))

    assert response.status_code == 403


def test_job_posting_validates_payload(app, client):
    with app.app_context():
        user_id = create_employer(job_credits=1)

    response = client.post(
        "/jobs", json={"title": "Missing description"}, headers=auth_header(app, user_id)
    )

    assert response.status_code == 400
    assert "description is required" in response.get_json()["detail"]
    with app.app_context():
        assert get_subscription(user_id).job_credits == 1


def test_search_excludes_expired_and_closed_jobs(app, client):
    with app.app_context():
        user_id = create_employer()
        now = utcnow()
        db.session.add_all(
            [
                Job(
                    employer_id=user_id,
                    title="Lifeguard",
                    description="Pool",
                    location="Wildwood",
                    expires_at=now + timedelta(days=3),
                ),
                Job(
                    employer_id=user_id,
                    title="Expired lifeguard",
                    description="Pool",
                    expires_at=now - timedelta(days=1),
                ),
                Job(
                    employer_id=user_id,
                    title="Closed lifeguard",
                    description="Pool",
                    status="CLOSED",
                ),
                Job(employer_id=user_id, title="Housekeeper", description="Hotel"),
            ]
        )
        db.session.commit()

    response = client.get("/jobs", query_string={"q": "lifeguard"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["count"] == 1
    assert payload["results"][0]["title"] == "Lifeguard"

    by_location = client.get("/jobs", query_string={"location": "wild"}).get_json()
    assert [job["title"] for job in by_location["results"]] == ["Lifeguard"]


def test_owner_can_update_and_see_closed_job(app, client):
    with app.app_context():
        owner = create_employer("owner@example.com")
        stranger = create_employer("stranger@example.com")
        job = Job(employer_id=owner, title="Cook", description="Kitchen")
        db.session.add(job)
        db.session.commit()
        job_id = job.id

    forbidden = client.patch(
        f"/jobs/{job_id}", json={"status": "CLOSED"}, headers=auth_header(app, stranger)
    )
    assert forbidden.status_code == 403

    updated = client.patch(
        f"/jobs/{job_id}",
        json={"status": "CLOSED", "expires_at": "2030-01-01T00:00:00Z"},
        headers=auth_header(app, owner),
    )
    assert updated.status_code == 200
    assert updated.get_json()["status"] == "CLOSED"
    assert updated.get_json()["expires_at"] == "2030-01-01T00:00:00"

    assert client.get(f"/jobs/{job_id}").status_code == 403
    assert client.get(f"/jobs/{job_id}", headers=auth_header(app, owner)).status_code == 200
    assert client.get("/jobs/9999").status_code == 404
