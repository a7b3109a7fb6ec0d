import pytest

from loadtests.config import ConfigurationError
from loadtests.shape import Stage, StagesShape, spawn_rate, target_users, total_duration

STAGES = [Stage("2m", 10), Stage("5m", 50), Stage("2m", 100), Stage("5m", 100), Stage("2m", 0)]


def test_stage_parses_timespans():
    assert Stage("2m", 10).duration == 120
    assert Stage("1h30m", 1).duration == 5400
    assert Stage(45, 1).duration == 45


@pytest.mark.parametrize("duration, target", [(0, 5), (-1, 5), (10, -1), (10, 1.5), ("soon", 1)])
def test_stage_rejects_invalid_values(duration, target):
    with pytest.raises(ConfigurationError):
        Stage(duration, target)


def test_total_duration():
    assert total_duration(STAGES) == 16 * 60


def test_ramps_linearly_from_zero():
    assert target_users(STAGES, 0) == 0
    assert target_users(STAGES, 60) == pytest.approx(5)
    assert target_users(STAGES, 120) == pytest.approx(10)


def test_continuous_at_stage_boundaries():
    boundary = 0
    for stage in STAGES[:-1]:
        boundary += stage.duration
        before = target_users(STAGES, boundary - 1e-6)
        at = target_users(STAGES, boundary)
        assert before == pytest.approx(at, abs=1e-3)
        assert at == pytest.approx(stage.target)


def test_hold_stage_stays_flat():
    start = 9 * 60
    assert target_users(STAGES, start + 10) == pytest.approx(100)
    assert target_users(STAGES, start + 290) == pytest.approx(100)


def test_ramp_down_and_stop():
    assert target_users(STAGES, 15 * 60) == pytest.approx(50)
    assert target_users(STAGES, 16 * 60) is None


def test_spawn_rate_follows_slope():
    # 40 users over 300s rounds up to 1 user/s
    assert spawn_rate(STAGES, 200) == 1
    assert spawn_rate([Stage(10, 100)], 1) == 10
    assert spawn_rate(STAGES, 10 ** 6) is None


class TwoStageShape(StagesShape):
    stages = (Stage(10, 10), Stage(10, 0))


@pytest.mark.parametrize(
    "run_time, expected",
    [(0, (0, 1)), (5, (5, 1)), (10, (10, 1)), (15, (5, 1)), (20, None), (60, None)],
)
def test_shape_tick(run_time, expected):
    shape = TwoStageShape()
    shape.get_run_time = lambda: run_time
    assert shape.tick() == expected


def test_shape_tick_rounds_and_scales_spawn_rate():
    class SteepShape(StagesShape):
        stages = (Stage(4, 50),)

    shape = SteepShape()
    shape.get_run_time = lambda: 1.1
    # 13.75 users, 50 users over 4s
    assert shape.tick() == (14, 13)
