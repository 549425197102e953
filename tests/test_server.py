"""
HTTP エンドポイントのテスト
"""
import os
import sys
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics_runner.errors import ElementNotFound
from analytics_runner.models import AssertionResult, GotoStep, TrackerConfig
from analytics_runner.server import app

BODY = {
    "test": {
        "name": "Demo Store Tests",
        "steps": [
            {"action": "goto", "value": "https://x"},
            {
                "action": "test",
                "test": {
                    "id": "1", "name": "cart", "for": "GA", "type": "requestMatchRegex",
                    "match": {"key": "ea", "value": "add_to_cart"}, "options": {"matchAnyRequest": True},
                },
            },
        ],
    },
    "options": {"headless": True, "trackRequests": [{"name": "GA", "url": "/collect", "abortRequest": True}]},
}


@pytest.fixture
def runner(monkeypatch):
    mock = AsyncMock(return_value=[AssertionResult("1", "cart", "PASS")])
    monkeypatch.setattr(app.state, "run_test", mock)
    return mock


@pytest.fixture
def client():
    return TestClient(app)


class TestRunTestEndpoint:

    def test_success(self, client, runner):
        response = client.post("/runTest", json=BODY)

        assert response.status_code == 200
        assert response.json() == [{"test": {"id": "1", "name": "cart", "result": "PASS"}}]
        test, options = runner.await_args.args
        assert test.steps[0] == GotoStep("https://x")
        assert options.trackers == (TrackerConfig("GA", "/collect", True),)

    def test_root_path(self, client, runner):
        assert client.post("/", json=BODY).status_code == 200

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_other_methods_rejected(self, client, runner, method):
        """POST 以外は 400、ブラウザは起動しない"""
        response = getattr(client, method)("/runTest")

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request method"
        runner.assert_not_awaited()

    @pytest.mark.parametrize("method", ["HEAD", "TRACE"])
    def test_bodiless_methods_rejected(self, client, runner, method):
        """HEAD / TRACE も 405 ではなく 400"""
        response = client.request(method, "/runTest")

        assert response.status_code == 400
        runner.assert_not_awaited()

    @pytest.mark.parametrize("body", [{}, {"test": "goto"}, [1, 2]])
    def test_invalid_test(self, client, runner, body):
        response = client.post("/runTest", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid test sequence"
        runner.assert_not_awaited()

    def test_not_json(self, client, runner):
        response = client.post("/runTest", content=b"not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        runner.assert_not_awaited()

    def test_invalid_options(self, client, runner):
        response = client.post("/runTest", json={"test": BODY["test"], "options": "headless"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid options"
        runner.assert_not_awaited()

    def test_unknown_step(self, client, runner):
        body = {"test": {"name": "t", "steps": [{"action": "hover", "element": "#a"}]}}
        response = client.post("/runTest", json=body)

        assert response.status_code == 400
        assert "hover" in response.json()["detail"]
        runner.assert_not_awaited()

    def test_step_failure(self, client, runner):
        runner.side_effect = ElementNotFound("#addToCart", "not attached after 30000ms")
        response = client.post("/runTest", json=BODY)

        assert response.status_code == 400
        assert "#addToCart" in response.json()["detail"]

    def test_unexpected_failure(self, client, runner):
        runner.side_effect = RuntimeError("browser crashed")
        response = client.post("/runTest", json=BODY)

        assert response.status_code == 400
        assert "browser crashed" in response.json()["detail"]
