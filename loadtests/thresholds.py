"""Pass/fail expressions such as ``p(95)<500`` over aggregated run metrics."""

import logging
import operator
import re

from loadtests.config import ConfigurationError

logger = logging.getLogger(__name__)

OPERATORS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}

_EXPRESSION = re.compile(
    r"^\s*(?P<agg>avg|min|max|med|count|rate|passes|fails|p\(\s*(?P<pct>\d+(?:\.\d+)?)\s*\))"
    r"\s*(?P<op><=|>=|==|!=|<|>)\s*(?P<value>-?\d+(?:\.\d+)?)\s*$"
)


class Threshold:
    def __init__(self, metric, expression):
        match = _EXPRESSION.match(expression)
        if match is None:
            raise ConfigurationError("invalid threshold for {!r}: {!r}".format(metric, expression))
        pct = match.group("pct")
        if pct is not None:
            pct = float(pct)
            if pct > 100:
                raise ConfigurationError("percentile out of range in {!r}".format(expression))
            self.aggregation = ("p", pct)
        else:
            self.aggregation = match.group("agg")
        self.metric = metric
        self.expression = expression.strip()
        self.op = match.group("op")
        self.limit = float(match.group("value"))

    def check(self, observed):
        return OPERATORS[self.op](observed, self.limit)

    def __repr__(self):
        return "Threshold({!r}, {!r})".format(self.metric, self.expression)


class ThresholdResult:
    def __init__(self, threshold, observed, passed, skipped=False):
        self.threshold = threshold
        self.observed = observed
        self.passed = passed
        self.skipped = skipped

    def as_dict(self):
        return {
            "metric": self.threshold.metric,
            "expression": self.threshold.expression,
            "observed": self.observed,
            "passed": self.passed,
            "skipped": self.skipped,
        }


def parse_thresholds(spec):
    """``{"errors": ["rate<0.1"]}`` -> list of :class:`Threshold`, validated eagerly."""
    thresholds = []
    for metric, expressions in spec.items():
        if isinstance(expressions, str):
            expressions = [expressions]
        thresholds.extend(Threshold(metric, expression) for expression in expressions)
    return thresholds


def _supports(metric, aggregation):
    name = aggregation[0] if isinstance(aggregation, tuple) else aggregation
    return name in metric.aggregations


def evaluate_thresholds(thresholds, registry):
    results = []
    for threshold in thresholds:
        metric = registry.get(threshold.metric)
        if metric is None or metric.is_empty():
            logger.warning("No observations for %s, skipping threshold %s", threshold.metric, threshold.expression)
            results.append(ThresholdResult(threshold, None, True, skipped=True))
            continue
        if not _supports(metric, threshold.aggregation):
            raise ConfigurationError(
                "{} metric {!r} cannot be aggregated by {!r}".format(metric.kind, metric.name, threshold.expression)
            )
        observed = metric.aggregate(threshold.aggregation)
        results.append(ThresholdResult(threshold, observed, threshold.check(observed)))
    return results


def all_passed(results):
    return all(result.passed for result in results)
