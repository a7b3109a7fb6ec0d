"""Authenticated API endpoints, including the dashboard.

    BASE_URL=http://localhost:8080 API_TOKEN=... locust -f loadtests/scenarios/api.py --headless
"""

from locust import events

from loadtests.config import Settings
from loadtests.scenario import Scenario, ScenarioUser, Step
from loadtests.shape import StagesShape

API = Scenario(
    name="api",
    settings=Settings.from_env("BASE_URL", "http://localhost:8080"),
    steps=[
        Step("API health", "/api/health", max_duration_ms=200, sleep=1),
        Step("API users", "/api/users", max_duration_ms=500, sleep=1),
        Step("API products", "/api/products", max_duration_ms=500, sleep=1),
        Step("API dashboard", "/api/v1/dashboard", max_duration_ms=800, sleep=1),
    ],
    stages=[
        ("30s", 5),
        ("1m", 20),
        ("3m", 20),
        ("30s", 0),
    ],
    thresholds={
        "http_req_duration": ["p(95)<500", "p(99)<1000"],
        "errors": ["rate<0.01"],
        "checks": ["rate>0.95"],
    },
)


class ApiUser(ScenarioUser):
    scenario = API
    host = API.settings.base_url


class ApiShape(StagesShape):
    stages = API.stages


API.install(events)
