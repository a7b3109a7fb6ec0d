from types import SimpleNamespace

import pytest

from loadtests.config import Settings
from loadtests.scenario import Scenario, Step


class FakeResponse:
    def __init__(self, status_code=200, response_time=100.0):
        self.status_code = status_code
        self.request_meta = {"response_time": response_time}
        self.marked = None

    def success(self):
        self.marked = "success"

    def failure(self, exc):
        self.marked = "failure: {}".format(exc)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeClient:
    """Stands in for Locust's HttpSession; replies from a queue of (status, ms)."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []
        self.responses = []

    def get(self, path, **kwargs):
        self.calls.append((path, kwargs))
        status, ms = self.replies.pop(0) if self.replies else (200, 100.0)
        response = FakeResponse(status, ms)
        self.responses.append(response)
        return response


class FakeSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def make_scenario(tmp_path, token="", steps=None, thresholds=None, base_url="http://localhost:8080"):
    return Scenario(
        name="test",
        settings=Settings(base_url, token=token, results_dir=str(tmp_path)),
        steps=steps or [Step("API dashboard", "/api/v1/dashboard", max_duration_ms=500, sleep=1)],
        stages=[("10s", 2), ("10s", 0)],
        thresholds=thresholds if thresholds is not None else {"http_req_duration": ["p(95)<500"]},
    )


def make_environment(scenario, runner=None, host=None):
    user_class = type("TestUser", (), {"scenario": scenario})
    return SimpleNamespace(user_classes=[user_class], runner=runner, host=host, process_exit_code=None)


@pytest.fixture
def fake_sleep():
    return FakeSleep()
