"""Staged ramp profile: linear interpolation between stage targets."""

import math

from locust import LoadTestShape
from locust.util.timespan import parse_timespan

from loadtests.config import ConfigurationError


class Stage:
    def __init__(self, duration, target):
        if isinstance(duration, str):
            try:
                duration = parse_timespan(duration)
            except ValueError as e:
                raise ConfigurationError("invalid stage duration {!r}: {}".format(duration, e))
        if isinstance(target, bool) or not isinstance(target, int):
            raise ConfigurationError("stage target must be an integer, got {!r}".format(target))
        if duration <= 0:
            raise ConfigurationError("stage duration must be positive, got {!r}".format(duration))
        if target < 0:
            raise ConfigurationError("stage target must not be negative, got {!r}".format(target))
        self.duration = duration
        self.target = target

    def __repr__(self):
        return "Stage(duration={!r}, target={!r})".format(self.duration, self.target)


def total_duration(stages):
    return sum(stage.duration for stage in stages)


def _locate(stages, elapsed):
    """Stage index, its start time and the previous target, or None past the end."""
    start = 0
    previous = 0
    for index, stage in enumerate(stages):
        if elapsed < start + stage.duration:
            return index, start, previous
        start += stage.duration
        previous = stage.target
    return None


def target_users(stages, elapsed):
    """Concurrency ``elapsed`` seconds into the run, or None once all stages are done."""
    located = _locate(stages, elapsed)
    if located is None:
        return None
    index, start, previous = located
    stage = stages[index]
    progress = (elapsed - start) / stage.duration
    return previous + (stage.target - previous) * progress


def spawn_rate(stages, elapsed):
    located = _locate(stages, elapsed)
    if located is None:
        return None
    index, _, previous = located
    stage = stages[index]
    return max(1, math.ceil(abs(stage.target - previous) / stage.duration))


class StagesShape(LoadTestShape):
    """Drives user count through ``stages``; subclasses set the tuple."""

    abstract = True
    stages = ()

    def tick(self):
        run_time = self.get_run_time()
        users = target_users(self.stages, run_time)
        if users is None:
            return None
        return round(users), spawn_rate(self.stages, run_time)
