"""Three-tier application: homepage plus the API endpoints behind it.

    APP_URL=http://staging.example.com locust -f loadtests/scenarios/frontend.py --headless
"""

from locust import events

from loadtests.config import Settings
from loadtests.scenario import Scenario, ScenarioUser, Step
from loadtests.shape import StagesShape

FRONTEND = Scenario(
    name="frontend",
    settings=Settings.from_env("APP_URL", "http://localhost"),
    steps=[
        Step("frontend", "/", max_duration_ms=500, sleep=1),
        Step("API health", "/api/health", max_duration_ms=200, sleep=1),
        Step("API users", "/api/users", max_duration_ms=1000, sleep=2),
        # reaches the database through the API
        Step("API products", "/api/products", max_duration_ms=1500, sleep=2),
    ],
    stages=[
        ("2m", 10),  # ramp up
        ("5m", 50),
        ("2m", 100),
        ("5m", 100),  # hold
        ("2m", 0),  # ramp down
    ],
    thresholds={
        "http_req_duration": ["p(95)<500"],
        "errors": ["rate<0.1"],
    },
)


class FrontendUser(ScenarioUser):
    scenario = FRONTEND
    host = FRONTEND.settings.base_url


class FrontendShape(StagesShape):
    stages = FRONTEND.stages


FRONTEND.install(events)
