import json
import logging
import os
import time

from loadtests.thresholds import all_passed, evaluate_thresholds

logger = logging.getLogger(__name__)

HTTP_REQS = "http_reqs"
HTTP_REQ_DURATION = "http_req_duration"
HTTP_REQ_FAILED = "http_req_failed"


class MetricsCollector:
    """Feeds Locust's request events into the registry and reports the run on quit."""

    def __init__(self, registry, thresholds=(), results_dir="results"):
        self.registry = registry
        self.thresholds = list(thresholds)
        self.results_dir = results_dir
        self.start_time = None
        self.end_time = None
        # built-ins exist before the first request so a run with no traffic still reports them
        registry.counter(HTTP_REQS)
        registry.trend(HTTP_REQ_DURATION)
        registry.rate(HTTP_REQ_FAILED)

    def reset(self):
        self.registry.reset()
        self.start_time = None
        self.end_time = None

    def on_request(self, request_type, name, response_time, response_length, exception=None, **kwargs):
        if self.start_time is None:
            self.start_time = time.time()

        self.registry.counter(HTTP_REQS).add()
        self.registry.trend(HTTP_REQ_DURATION).add(response_time)
        self.registry.rate(HTTP_REQ_FAILED).add(exception is not None)

    def stop(self, scenario_name, target):
        """Evaluate thresholds, log the summary and write the JSON artifact.

        Returns True when every threshold passed.
        """
        self.end_time = time.time()
        duration = self.end_time - self.start_time if self.start_time else 0
        results = evaluate_thresholds(self.thresholds, self.registry)
        passed = all_passed(results)

        report = {
            "scenario": scenario_name,
            "target": target,
            "total_duration": duration,
            "metrics": self.registry.summary(),
            "checks": self.registry.check_tally.summary(),
            "thresholds": [result.as_dict() for result in results],
            "passed": passed,
        }
        self.log_summary(report, results)

        if self.results_dir:
            os.makedirs(self.results_dir, exist_ok=True)
            path = os.path.join(self.results_dir, "test_{}_metrics.json".format(int(self.end_time)))
            with open(path, "w") as f:
                json.dump(report, f, indent=2)
            logger.info("Metrics written to %s", path)
        return passed

    def log_summary(self, report, results):
        durations = self.registry.trend(HTTP_REQ_DURATION)
        failed = self.registry.rate(HTTP_REQ_FAILED)
        logger.info("Requests: %d, failed: %.2f%%", failed.total, failed.rate * 100)
        if not durations.is_empty():
            logger.info(
                "Response time p50=%.2fms p95=%.2fms p99=%.2fms",
                durations.percentile(50),
                durations.percentile(95),
                durations.percentile(99),
            )
        for name, tally in report["checks"].items():
            total = tally["passes"] + tally["fails"]
            logger.info("check %-45s %d/%d passed", name, tally["passes"], total)
        for result in results:
            if result.skipped:
                verdict = "SKIP"
            else:
                verdict = "PASS" if result.passed else "FAIL"
            logger.info("threshold %s %s: %s (observed %s)", result.threshold.metric, result.threshold.expression, verdict, result.observed)
