"""
Tests for the v1 workflow endpoints.

Tests:
- Identity headers
- Document review and verification over HTTP
- Quote lifecycle over HTTP, including conflict bodies
- Interview negotiation and talent demands over HTTP
- Admin sweep and audit trail
"""

import pytest
from httpx import ASGITransport, AsyncClient

from api.dependencies import get_db
from api.main import app
from api.services.interviews import schedule_interview
from api.services.quotes import request_quote
from core.config import settings
from core.identity import ActorRole

API = settings.api_v1_prefix


def headers(actor):
    return {"X-Actor-Id": actor.id, "X-Actor-Role": actor.role.value}


@pytest.fixture
async def client(session):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


class TestIdentity:
    async def test_missing_headers(self, client):
        response = await client.get(f"{API}/quotes")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"

    async def test_unknown_role(self, client):
        response = await client.get(
            f"{API}/quotes", headers={"X-Actor-Id": "x", "X-Actor-Role": "recruiter"}
        )

        assert response.status_code == 401

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    async def test_ready(self, client):
        response = await client.get("/ready")

        assert response.json() == {"status": "ready"}


class TestDocumentsAndVerification:
    async def test_review_flow(self, client, staff, candidate):
        response = await client.post(
            f"{API}/documents",
            json={"owner_id": candidate.id, "kind": "passport", "blob_ref": "blob://p"},
            headers=headers(candidate),
        )
        assert response.status_code == 201
        document = response.json()
        assert document["status"] == "pending"
        assert document["version"] == 1

        queue = await client.get(f"{API}/documents/pending", headers=headers(staff))
        assert queue.json()["total"] == 1

        eligibility = await client.get(
            f"{API}/actors/{candidate.id}/eligibility", headers=headers(candidate)
        )
        assert eligibility.json() == {"can_verify": False, "blocking_count": 1}

        reviewed = await client.post(
            f"{API}/documents/{document['id']}/review",
            json={"decision": "approve"},
            headers=headers(staff),
        )
        assert reviewed.json()["status"] == "verified"

        again = await client.post(
            f"{API}/documents/{document['id']}/review",
            json={"decision": "reject", "reason": "late"},
            headers=headers(staff),
        )
        assert again.status_code == 409
        assert again.json()["error"]["details"]["current"]["status"] == "verified"

        verified = await client.post(
            f"{API}/actors/{candidate.id}/verification/resolve",
            json={"decision": "verify", "cost_hint": "5000 EUR"},
            headers=headers(staff),
        )
        assert verified.status_code == 200
        assert verified.json()["status"] == "verified"

    async def test_candidate_cannot_review(self, client, candidate):
        response = await client.post(
            f"{API}/documents/doc-1/review",
            json={"decision": "approve"},
            headers=headers(candidate),
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_invalid_kind(self, client, candidate):
        response = await client.post(
            f"{API}/documents",
            json={"owner_id": candidate.id, "kind": "selfie", "blob_ref": "blob://p"},
            headers=headers(candidate),
        )

        assert response.status_code == 422

    async def test_withdraw(self, client, candidate):
        created = await client.post(
            f"{API}/documents",
            json={"owner_id": candidate.id, "kind": "cv", "blob_ref": "blob://cv"},
            headers=headers(candidate),
        )

        response = await client.delete(
            f"{API}/documents/{created.json()['id']}", headers=headers(candidate)
        )

        assert response.status_code == 204

    async def test_profile_update(self, client, candidate):
        response = await client.patch(
            f"{API}/actors/{candidate.id}/profile",
            json={"headline": "Compiler engineer"},
            headers=headers(candidate),
        )

        assert response.status_code == 200
        assert response.json()["headline"] == "Compiler engineer"


class TestQuotes:
    async def test_quote_lifecycle(self, client, staff, employer, candidate):
        created = await client.post(
            f"{API}/quotes",
            json={"employer_id": employer.id, "candidate_id": candidate.id},
            headers=headers(employer),
        )
        assert created.status_code == 201
        quote_id = created.json()["id"]

        pipeline = await client.get(
            f"{API}/pipeline/{employer.id}/{candidate.id}", headers=headers(employer)
        )
        assert pipeline.json()["status"] == "asked_quote"

        duplicate = await client.post(
            f"{API}/quotes",
            json={"employer_id": employer.id, "candidate_id": candidate.id},
            headers=headers(employer),
        )
        assert duplicate.status_code == 409

        missing_estimate = await client.post(
            f"{API}/quotes/{quote_id}/resolve",
            json={"decision": "approved"},
            headers=headers(staff),
        )
        assert missing_estimate.status_code == 422
        assert missing_estimate.json()["error"]["details"] == {"field": "cost_estimate"}

        approved = await client.post(
            f"{API}/quotes/{quote_id}/resolve",
            json={
                "decision": "approved",
                "cost_estimate": "€5,000-€7,000",
                "options": [{"name": "Standard", "perks": ["laptop"]}],
            },
            headers=headers(staff),
        )
        assert approved.status_code == 200
        option_id = approved.json()["options"][0]["id"]

        selected = await client.post(
            f"{API}/quotes/{quote_id}/select",
            json={"option_id": option_id},
            headers=headers(employer),
        )
        assert selected.json()["selected_option_id"] == option_id
        assert selected.json()["options"][0]["selected"] is True

        finalized = await client.post(f"{API}/quotes/{quote_id}/finalize", headers=headers(staff))
        assert finalized.json()["finalized_at"] is not None

        listed = await client.get(f"{API}/quotes?status=approved", headers=headers(employer))
        assert [q["id"] for q in listed.json()["items"]] == [quote_id]

    async def test_unknown_quote(self, client, staff):
        response = await client.get(f"{API}/quotes/nope", headers=headers(staff))

        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"entity": "QuoteRequest", "id": "nope"}


class TestInterviewsAndDemands:
    async def test_interview_flow(self, client, employer, candidate):
        created = await client.post(
            f"{API}/interviews",
            json={
                "employer_id": employer.id,
                "candidate_id": candidate.id,
                "title": "Screening",
                "proposed_times": [
                    {"starts_at": "2026-11-10T09:00:00Z"},
                    {"starts_at": "2026-11-11T09:00:00Z", "duration_minutes": 30},
                ],
            },
            headers=headers(employer),
        )
        assert created.status_code == 201
        interview = created.json()
        slot_id = interview["proposed_times"][0]["id"]

        confirmed = await client.post(
            f"{API}/interviews/{interview['id']}/respond",
            json={"slot_id": slot_id, "accepted": True},
            headers=headers(candidate),
        )
        assert confirmed.json()["status"] == "confirmed"
        assert confirmed.json()["confirmed_time"].startswith("2026-11-10T09:00:00")

        completed = await client.post(
            f"{API}/interviews/{interview['id']}/complete", headers=headers(employer)
        )
        assert completed.json()["status"] == "completed"

        cancelled = await client.post(
            f"{API}/interviews/{interview['id']}/cancel",
            json={"reason": "too late"},
            headers=headers(candidate),
        )
        assert cancelled.status_code == 409

    async def test_demand_flow(self, client, staff, employer, candidate):
        created = await client.post(
            f"{API}/talent-demands",
            json={"employer_id": employer.id, "title": "Rust developer", "urgency": "critical"},
            headers=headers(employer),
        )
        assert created.status_code == 201
        demand_id = created.json()["id"]

        suggested = await client.post(
            f"{API}/talent-demands/{demand_id}/suggestions",
            json={"candidate_id": candidate.id},
            headers=headers(staff),
        )
        assert suggested.json()["status"] == "treating"
        assert suggested.json()["suggested_candidate_ids"] == [candidate.id]

        reopen = await client.put(
            f"{API}/talent-demands/{demand_id}/status",
            json={"status": "open"},
            headers=headers(staff),
        )
        assert reopen.status_code == 409

        quotes = await client.get(f"{API}/quotes", headers=headers(employer))
        assert quotes.json()["items"][0]["demand_id"] == demand_id


class TestReadOwnership:
    """Single-entity reads are limited to the pair and to staff."""

    @pytest.fixture
    async def outsiders(self, make_actor):
        return (
            await make_actor("employer-x", ActorRole.EMPLOYER, verified=True),
            await make_actor("candidate-x", ActorRole.CANDIDATE),
        )

    async def test_quote(self, client, session, staff, employer, candidate, outsiders):
        quote = await request_quote(session, employer, employer.id, candidate.id)
        url = f"{API}/quotes/{quote.id}"

        for outsider in outsiders:
            response = await client.get(url, headers=headers(outsider))
            assert response.status_code == 403
            assert response.json()["error"]["code"] == "PERMISSION_DENIED"
        for party in (employer, candidate, staff):
            assert (await client.get(url, headers=headers(party))).status_code == 200

    async def test_interview(self, client, session, staff, employer, candidate, outsiders):
        interview = await schedule_interview(
            session, employer, employer.id, candidate.id, "Screening", ["2026-11-10T09:00:00Z"]
        )
        url = f"{API}/interviews/{interview.id}"

        for outsider in outsiders:
            assert (await client.get(url, headers=headers(outsider))).status_code == 403
        for party in (employer, candidate, staff):
            assert (await client.get(url, headers=headers(party))).status_code == 200

    async def test_pipeline_entry(self, client, session, staff, employer, candidate, outsiders):
        await request_quote(session, employer, employer.id, candidate.id)
        url = f"{API}/pipeline/{employer.id}/{candidate.id}"

        for outsider in outsiders:
            assert (await client.get(url, headers=headers(outsider))).status_code == 403
        for party in (employer, candidate, staff):
            response = await client.get(url, headers=headers(party))
            assert response.status_code == 200
            assert response.json()["status"] == "asked_quote"


class TestAdmin:
    async def test_sweep_and_audit(self, client, staff, employer, candidate, monkeypatch):
        monkeypatch.setattr(settings, "quote_expiry_days", 1)
        created = await client.post(
            f"{API}/quotes",
            json={"employer_id": employer.id, "candidate_id": candidate.id},
            headers=headers(employer),
        )
        quote_id = created.json()["id"]

        swept = await client.post(
            f"{API}/admin/expiry-sweep",
            params={"now": "2030-01-01T00:00:00Z"},
            headers=headers(staff),
        )
        assert swept.json()["expired_quote_ids"] == [quote_id]

        audit = await client.get(
            f"{API}/admin/audit",
            params={"entity_type": "quote_request", "entity_id": quote_id},
            headers=headers(staff),
        )
        actions = [entry["action"] for entry in audit.json()["items"]]
        assert actions == ["quote_expired", "quote_requested"]

    async def test_sweep_is_staff_only(self, client, employer):
        response = await client.post(f"{API}/admin/expiry-sweep", headers=headers(employer))

        assert response.status_code == 403
