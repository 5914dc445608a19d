import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from udpinger.api.jobs import RunManager
from udpinger.api.main import app
from udpinger.models import RunConfig


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def wait_for_run(client, run_id, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        run = client.get(f"/api/runs/{run_id}").json()
        if run["status"] not in ("pending", "running", "cancelling"):
            return run
        time.sleep(0.05)
    raise AssertionError(f"run {run_id} did not finish")


def test_root(client):
    assert client.get("/").status_code == 200


def test_unknown_run_is_404(client):
    assert client.get("/api/runs/nope").status_code == 404
    assert client.delete("/api/runs/nope").status_code == 404


def test_zero_period_is_rejected(client):
    resp = client.post(
        "/api/runs",
        json={"server_ip": "127.0.0.1", "server_port": 9000, "count": 3, "period": 0, "timeout": 50},
    )
    assert resp.status_code == 422
    assert "period must be positive" in resp.json()["detail"]


def test_missing_field_is_rejected(client):
    resp = client.post("/api/runs", json={"server_ip": "127.0.0.1", "server_port": 9000})
    assert resp.status_code == 422


def test_run_against_unreachable_port(client, closed_port):
    resp = client.post(
        "/api/runs",
        json={"server_ip": "127.0.0.1", "server_port": closed_port, "count": 2, "period": 10, "timeout": 50},
    )
    assert resp.status_code == 200
    run_id = resp.json()["run_id"]

    run = wait_for_run(client, run_id)
    assert run["status"] == "completed"
    assert run["summary"]["transmitted"] == 2
    assert run["summary"]["received"] == 0
    assert run["summary"]["loss_percent"] == 100
    assert [r["sequence"] for r in run["results"]] == [1, 2]
    assert run["output"][0] == "PING 127.0.0.1"
    assert run["output"][-1].endswith("rtt min/avg/max = N/A")

    assert any(r["id"] == run_id for r in client.get("/api/runs").json())
    assert client.delete(f"/api/runs/{run_id}").status_code == 200
    assert client.get(f"/api/runs/{run_id}").status_code == 404


def test_out_of_range_port_is_rejected(client):
    resp = client.post(
        "/api/runs",
        json={"server_ip": "127.0.0.1", "server_port": 70000, "count": 3, "period": 10, "timeout": 50},
    )
    assert resp.status_code == 422
    assert "target_port must be in 1..65535" in resp.json()["detail"]


def test_unresolvable_host_is_rejected(client):
    resp = client.post(
        "/api/runs",
        json={"server_ip": "no-such-host.invalid", "server_port": 9000, "count": 3, "period": 10, "timeout": 50},
    )
    assert resp.status_code == 422
    assert "cannot resolve host" in resp.json()["detail"]


def test_delete_live_run_cancels_then_forgets(closed_port):
    async def main():
        manager = RunManager()
        run_id = manager.create_run(
            RunConfig("127.0.0.1", closed_port, count=50, period_ms=20, timeout_ms=50)
        )
        # deleted before the background task had a chance to start
        manager.delete_run(run_id)
        assert manager.get_run(run_id).status == "cancelling"

        run = await manager.wait(run_id)
        after_finish = run.status, run.summary["transmitted"], run.completed_at

        manager.delete_run(run_id)
        gone = manager.get_run(run_id)
        manager._cleanup_task.cancel()
        return after_finish, gone

    (status, transmitted, completed_at), gone = asyncio.run(main())
    assert status == "cancelled"
    assert transmitted < 50
    assert completed_at is not None
    assert gone is None
