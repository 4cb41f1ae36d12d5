"""Health & Readiness — liveness always 200, readiness follows backend health."""


async def test_liveness_returns_200(client):
    res = await client.get("/v1/health_check")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"
    assert res.json()["address"] == "0.0.0.0:8080"


async def test_ready_when_both_backends_healthy(client):
    res = await client.get("/v1/health_check/ready")
    assert res.status_code == 200
    assert res.json()["checks"] == {
        "object_store": "healthy", "message_broker": "healthy",
    }


async def test_not_ready_when_broker_down(client, broker):
    broker.healthy = False
    res = await client.get("/v1/health_check/ready")
    assert res.status_code == 503
    assert res.json()["checks"]["message_broker"] == "unavailable"


async def test_not_ready_when_bucket_unreachable(client, store):
    store.healthy = False
    res = await client.get("/v1/health_check/ready")
    assert res.status_code == 503
    assert res.json()["checks"]["object_store"] == "unavailable"
