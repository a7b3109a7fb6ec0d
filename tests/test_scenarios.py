import pytest

from loadtests.scenarios.api import API, ApiShape, ApiUser
from loadtests.scenarios.frontend import FRONTEND, FrontendShape, FrontendUser
from loadtests.shape import total_duration


def test_frontend_profile():
    assert [(s.duration, s.target) for s in FRONTEND.stages] == [
        (120, 10), (300, 50), (120, 100), (300, 100), (120, 0),
    ]
    assert total_duration(FRONTEND.stages) == 960
    assert FrontendShape.stages == FRONTEND.stages


def test_frontend_thresholds():
    assert {(t.metric, t.expression) for t in FRONTEND.thresholds} == {
        ("http_req_duration", "p(95)<500"),
        ("errors", "rate<0.1"),
    }


def test_frontend_steps():
    assert [(s.path, s.max_duration_ms, s.sleep) for s in FRONTEND.steps] == [
        ("/", 500, 1),
        ("/api/health", 200, 1),
        ("/api/users", 1000, 2),
        ("/api/products", 1500, 2),
    ]


def test_api_steps_end_at_dashboard():
    assert [s.path for s in API.steps] == ["/api/health", "/api/users", "/api/products", "/api/v1/dashboard"]


def test_api_profile_starts_and_ends_idle():
    assert API.stages[-1].target == 0
    assert all(stage.duration > 0 for stage in API.stages)
    assert ApiShape.stages == API.stages


@pytest.mark.parametrize("user_class, scenario", [(FrontendUser, FRONTEND), (ApiUser, API)])
def test_user_classes_point_at_their_scenario(user_class, scenario):
    assert user_class.scenario is scenario
    assert user_class.host == scenario.settings.base_url
    assert not user_class.abstract
