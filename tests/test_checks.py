from loadtests.checks import check
from loadtests.metrics import MetricsRegistry
from loadtests.scenario import Step, StepResult


def test_records_every_outcome_without_raising():
    registry = MetricsRegistry()
    ok = check(
        StepResult(200, 120),
        {"is 200": lambda r: r.status == 200, "under 100ms": lambda r: r.duration < 100},
        registry,
    )
    assert ok is False
    assert registry.rate("checks").passes == 1
    assert registry.rate("checks").fails == 1
    assert registry.check_tally.summary() == {
        "is 200": {"passes": 1, "fails": 0},
        "under 100ms": {"passes": 0, "fails": 1},
    }


def test_step_checks_match_literal_predicates():
    registry = MetricsRegistry()
    step = Step("frontend", "/", max_duration_ms=500, sleep=1)
    assert check(StepResult(200, 120), step.checks(), registry) is True
    assert registry.check_tally.summary() == {
        "frontend status is 200": {"passes": 1, "fails": 0},
        "frontend response time < 500ms": {"passes": 1, "fails": 0},
    }


def test_latency_bound_is_strict():
    registry = MetricsRegistry()
    step = Step("API health", "/api/health", max_duration_ms=200, sleep=1)
    assert check(StepResult(200, 200), step.checks(), registry) is False
