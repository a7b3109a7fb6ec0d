"""Append-only metric accumulators shared by every virtual user of a run."""

import time

from loadtests.config import ConfigurationError


def percentile(sorted_values, p):
    """Linear interpolation between the closest ranks of an already sorted list."""
    if not sorted_values:
        return None
    if len(sorted_values) == 1:
        return sorted_values[0]
    k = (len(sorted_values) - 1) * (p / 100.0)
    lower = int(k)
    upper = min(lower + 1, len(sorted_values) - 1)
    return sorted_values[lower] + (sorted_values[upper] - sorted_values[lower]) * (k - lower)


class Metric:
    kind = None
    aggregations = ()

    def __init__(self, name):
        self.name = name

    def reset(self):
        raise NotImplementedError

    def state(self):
        raise NotImplementedError

    def merge(self, state):
        raise NotImplementedError

    def is_empty(self):
        raise NotImplementedError

    def aggregate(self, aggregation):
        """Value of one aggregation, ``p(95)`` being passed as ``("p", 95.0)``."""
        raise NotImplementedError

    def summary(self):
        raise NotImplementedError


class Counter(Metric):
    kind = "counter"
    aggregations = ("count", "rate")

    def __init__(self, name):
        super().__init__(name)
        self.reset()

    def reset(self):
        self.count = 0
        self.first_seen = None

    def state(self):
        return [self.count, self.first_seen]

    def merge(self, state):
        count, first_seen = state
        if first_seen is None:
            return
        if self.first_seen is None or first_seen < self.first_seen:
            self.first_seen = first_seen
        self.count += count

    def add(self, n=1):
        if self.first_seen is None:
            self.first_seen = time.time()
        self.count += n

    def is_empty(self):
        return self.first_seen is None

    def aggregate(self, aggregation):
        if aggregation == "count":
            return self.count
        if aggregation == "rate":
            elapsed = time.time() - self.first_seen if self.first_seen else 0
            return self.count / elapsed if elapsed > 0 else 0.0
        raise ConfigurationError("counter {!r} has no {!r} aggregation".format(self.name, aggregation))

    def summary(self):
        return {"count": self.count}


class Rate(Metric):
    kind = "rate"
    aggregations = ("rate", "passes", "fails")

    def __init__(self, name):
        super().__init__(name)
        self.reset()

    def reset(self):
        self.passes = 0
        self.fails = 0

    def state(self):
        return [self.passes, self.fails]

    def merge(self, state):
        self.passes += state[0]
        self.fails += state[1]

    def add(self, value):
        if value:
            self.passes += 1
        else:
            self.fails += 1

    @property
    def total(self):
        return self.passes + self.fails

    @property
    def rate(self):
        return self.passes / self.total if self.total else 0.0

    def is_empty(self):
        return self.total == 0

    def aggregate(self, aggregation):
        if aggregation == "rate":
            return self.rate
        if aggregation == "passes":
            return self.passes
        if aggregation == "fails":
            return self.fails
        raise ConfigurationError("rate {!r} has no {!r} aggregation".format(self.name, aggregation))

    def summary(self):
        return {"rate": self.rate, "passes": self.passes, "fails": self.fails}


class Trend(Metric):
    kind = "trend"
    aggregations = ("avg", "min", "max", "med", "count", "p")

    def __init__(self, name):
        super().__init__(name)
        self.reset()

    def reset(self):
        self.values = []

    def state(self):
        return list(self.values)

    def merge(self, state):
        self.values.extend(state)

    def add(self, value):
        self.values.append(value)

    def is_empty(self):
        return not self.values

    def percentile(self, p):
        return percentile(sorted(self.values), p)

    def aggregate(self, aggregation):
        if isinstance(aggregation, tuple) and aggregation[0] == "p":
            return self.percentile(aggregation[1])
        if aggregation == "count":
            return len(self.values)
        if not self.values:
            return None
        if aggregation == "avg":
            return sum(self.values) / len(self.values)
        if aggregation == "min":
            return min(self.values)
        if aggregation == "max":
            return max(self.values)
        if aggregation == "med":
            return self.percentile(50)
        raise ConfigurationError("trend {!r} has no {!r} aggregation".format(self.name, aggregation))

    def summary(self):
        if not self.values:
            return {"count": 0}
        return {
            "count": len(self.values),
            "avg": self.aggregate("avg"),
            "min": self.aggregate("min"),
            "med": self.aggregate("med"),
            "max": self.aggregate("max"),
            "p(90)": self.percentile(90),
            "p(95)": self.percentile(95),
            "p(99)": self.percentile(99),
        }


class CheckTally:
    """Per-check pass/fail counts, in the order checks were first seen."""

    def __init__(self):
        self.results = {}

    def add(self, name, passed):
        passes, fails = self.results.get(name, (0, 0))
        if passed:
            passes += 1
        else:
            fails += 1
        self.results[name] = (passes, fails)

    def reset(self):
        self.results = {}

    def summary(self):
        return {name: {"passes": p, "fails": f} for name, (p, f) in self.results.items()}


class MetricsRegistry:
    """Named metrics of one run; ``reset`` starts the next run from zero."""

    def __init__(self):
        self.metrics = {}
        self.check_tally = CheckTally()

    def _get_or_create(self, cls, name):
        metric = self.metrics.get(name)
        if metric is None:
            metric = self.metrics[name] = cls(name)
        elif not isinstance(metric, cls):
            raise ConfigurationError(
                "metric {!r} is already a {}, not a {}".format(name, metric.kind, cls.kind)
            )
        return metric

    def counter(self, name):
        return self._get_or_create(Counter, name)

    def rate(self, name):
        return self._get_or_create(Rate, name)

    def trend(self, name):
        return self._get_or_create(Trend, name)

    def get(self, name):
        return self.metrics.get(name)

    def reset(self):
        for metric in self.metrics.values():
            metric.reset()
        self.check_tally.reset()

    def summary(self):
        return {name: metric.summary() for name, metric in sorted(self.metrics.items())}

    def drain(self):
        """Snapshot of everything observed since the last drain, then start over.

        Workers ship this to the master, which folds it in with :meth:`merge`.
        """
        snapshot = {
            "metrics": {name: [metric.kind, metric.state()] for name, metric in self.metrics.items()},
            "checks": {name: list(counts) for name, counts in self.check_tally.results.items()},
        }
        self.reset()
        return snapshot

    def merge(self, snapshot):
        kinds = {"counter": self.counter, "rate": self.rate, "trend": self.trend}
        for name, (kind, state) in snapshot.get("metrics", {}).items():
            kinds[kind](name).merge(state)
        for name, (passes, fails) in snapshot.get("checks", {}).items():
            old_passes, old_fails = self.check_tally.results.get(name, (0, 0))
            self.check_tally.results[name] = (old_passes + passes, old_fails + fails)
