"""Payment Routes: HTTP surface of EscrowPaymentFlow.

Tests cover:
    - intent -> confirm -> release happy path and job status sync
    - gateway failures surface as 502 with retryable in the envelope
    - dispute and admin resolution
    - read access limited to the payment's parties
"""

from app.core.errors import GatewayError
from tests.services.builders import job_payload


def _as(user) -> dict:
    return {"X-User-Id": str(user.id)}


async def _accepted_job(client, creator, helper) -> dict:
    resp = await client.post("/api/v1/jobs", json=job_payload(), headers=_as(creator))
    job = resp.json()
    await client.post(f"/api/v1/jobs/{job['id']}/accept", headers=_as(helper))
    return job


async def _captured_payment(client, creator, helper) -> dict:
    job = await _accepted_job(client, creator, helper)
    resp = await client.post(
        "/api/v1/payments/intent",
        json={"job_id": job["id"], "amount": 10_000, "currency": "usd"},
        headers=_as(creator),
    )
    payment = resp.json()["payment"]
    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/confirm",
        json={"gateway_intent_id": payment["gateway_intent_id"]},
        headers=_as(creator),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


async def test_create_intent(client, client_user, helper_user):
    job = await _accepted_job(client, client_user, helper_user)

    resp = await client.post(
        "/api/v1/payments/intent",
        json={"job_id": job["id"], "amount": 10_000},
        headers=_as(client_user),
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["client_secret"].endswith("_secret")
    assert body["payment"]["platform_fee"] == 500
    assert body["payment"]["helper_amount"] == 9_500
    assert body["payment"]["status"] == "pending"


async def test_escrow_happy_path(client, client_user, helper_user):
    payment = await _captured_payment(client, client_user, helper_user)
    assert payment["status"] == "completed"
    job = (await client.get(f"/api/v1/jobs/{payment['job_id']}")).json()
    assert job["status"] == "in_progress"

    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/release", headers=_as(client_user),
    )
    assert resp.status_code == 200
    assert resp.json()["escrow_release_date"] is not None

    job = (await client.get(f"/api/v1/jobs/{payment['job_id']}")).json()
    assert job["status"] == "completed"
    assert job["payment_status"] == "released"


async def test_release_gateway_failure_is_retryable(client, client_user, helper_user, fake_gateway):
    payment = await _captured_payment(client, client_user, helper_user)
    fake_gateway.fail("transfer", GatewayError("timed out", "transfer"))

    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/release", headers=_as(client_user),
    )
    assert resp.status_code == 502
    error = resp.json()["error"]
    assert error["code"] == "GATEWAY_ERROR"
    assert error["retryable"] is True

    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/release", headers=_as(client_user),
    )
    assert resp.status_code == 200


async def test_failed_intent_is_payment_required(client, client_user, helper_user, fake_gateway):
    job = await _accepted_job(client, client_user, helper_user)
    payment = (await client.post(
        "/api/v1/payments/intent",
        json={"job_id": job["id"], "amount": 5_000},
        headers=_as(client_user),
    )).json()["payment"]
    fake_gateway.intent_status = "canceled"

    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/confirm",
        json={"gateway_intent_id": payment["gateway_intent_id"]},
        headers=_as(client_user),
    )
    assert resp.status_code == 402


async def test_dispute_and_resolve(client, client_user, helper_user, admin_user):
    payment = await _captured_payment(client, client_user, helper_user)

    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/dispute",
        json={"reason": "quality_issue", "description": "Still leaking"},
        headers=_as(client_user),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "disputed"

    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/resolve",
        json={"resolution": "partial_refund", "refund_amount": 3_000},
        headers=_as(admin_user),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["dispute_resolution"] == "partial_refund"
    assert body["refunded_amount"] == 3_000


async def test_resolve_by_client_forbidden(client, client_user, helper_user):
    payment = await _captured_payment(client, client_user, helper_user)
    await client.post(
        f"/api/v1/payments/{payment['id']}/dispute",
        json={"reason": "other"}, headers=_as(client_user),
    )
    resp = await client.post(
        f"/api/v1/payments/{payment['id']}/resolve",
        json={"resolution": "refund_client"}, headers=_as(client_user),
    )
    assert resp.status_code == 403


async def test_payment_reads(client, client_user, helper_user, second_helper):
    payment = await _captured_payment(client, client_user, helper_user)

    resp = await client.get(f"/api/v1/payments/{payment['id']}", headers=_as(helper_user))
    assert resp.status_code == 200
    resp = await client.get(f"/api/v1/payments/{payment['id']}", headers=_as(second_helper))
    assert resp.status_code == 403

    resp = await client.get(
        "/api/v1/payments", params={"status": "completed"}, headers=_as(client_user),
    )
    assert [p["id"] for p in resp.json()] == [payment["id"]]
