"""A fixed request sequence plus the hooks Locust calls around it."""

import logging

import gevent
from locust import HttpUser, constant, task
from locust.runners import WorkerRunner
import requests

from loadtests.checks import check
from loadtests.collector import MetricsCollector
from loadtests.config import ConfigurationError
from loadtests.metrics import MetricsRegistry
from loadtests.shape import Stage
from loadtests.thresholds import parse_thresholds

logger = logging.getLogger(__name__)

ERRORS = "errors"
RESPONSE_TIME = "response_time"
ITERATIONS = "iterations"

# same ceiling Locust/requests users would hit on a hung warm-up
WARMUP_TIMEOUT = 60


class StepResult:
    """What checks see of a response: status code and latency in milliseconds."""

    def __init__(self, status, duration):
        self.status = status
        self.duration = duration

    @property
    def ok(self):
        return 200 <= self.status < 300

    def __repr__(self):
        return "StepResult(status={!r}, duration={!r})".format(self.status, self.duration)


class Step:
    def __init__(self, label, path, max_duration_ms, sleep, expected_status=200):
        if not path.startswith("/"):
            raise ConfigurationError("step path must start with '/', got {!r}".format(path))
        if max_duration_ms <= 0:
            raise ConfigurationError("latency bound must be positive, got {!r}".format(max_duration_ms))
        if sleep < 0:
            raise ConfigurationError("think time must not be negative, got {!r}".format(sleep))
        self.label = label
        self.path = path
        self.max_duration_ms = max_duration_ms
        self.sleep = sleep
        self.expected_status = expected_status

    def checks(self):
        return {
            "{} status is {}".format(self.label, self.expected_status): lambda r: r.status == self.expected_status,
            "{} response time < {}ms".format(self.label, self.max_duration_ms): lambda r: r.duration < self.max_duration_ms,
        }

    def __repr__(self):
        return "Step({!r}, {!r})".format(self.label, self.path)


class Scenario:
    def __init__(self, name, settings, steps, stages, thresholds, warmup_path="/api/health"):
        if not steps:
            raise ConfigurationError("scenario {!r} has no steps".format(name))
        if not stages:
            raise ConfigurationError("scenario {!r} has no stages".format(name))
        self.name = name
        self.settings = settings
        self.steps = tuple(steps)
        self.stages = tuple(s if isinstance(s, Stage) else Stage(*s) for s in stages)
        self.thresholds = parse_thresholds(thresholds)
        self.warmup_path = warmup_path

        self.registry = MetricsRegistry()
        self.errors = self.registry.rate(ERRORS)
        self.response_time = self.registry.trend(RESPONSE_TIME)
        self.iterations = self.registry.counter(ITERATIONS)
        self.collector = MetricsCollector(self.registry, self.thresholds, settings.results_dir)
        self.running = False

    @property
    def headers(self):
        return self.settings.auth_headers()

    def run_step(self, client, step, sleep=gevent.sleep):
        with client.get(step.path, headers=self.headers, catch_response=True) as response:
            result = StepResult(response.status_code, response.request_meta["response_time"])
            check(result, step.checks(), self.registry)
            if result.status == step.expected_status:
                response.success()
            else:
                response.failure("Status {}".format(result.status))
        self.errors.add(not result.ok)
        self.response_time.add(result.duration)
        sleep(step.sleep)
        return result

    def iteration(self, client, sleep=gevent.sleep):
        results = [self.run_step(client, step, sleep) for step in self.steps]
        self.iterations.add()
        return results

    def hosts(self, environment):
        """True when this scenario's users run in ``environment``."""
        return any(getattr(user_class, "scenario", None) is self for user_class in environment.user_classes)

    def _coordinates(self, environment):
        return self.hosts(environment) and not isinstance(environment.runner, WorkerRunner)

    def target(self, environment):
        return (environment.host or self.settings.base_url).rstrip("/")

    def setup(self, environment, http_get=None):
        if not self._coordinates(environment) or self.running:
            return
        self.running = True
        self.collector.reset()
        target = self.target(environment)
        logger.info("Starting load test against: %s", target)

        http_get = http_get or requests.get
        try:
            response = http_get(target + self.warmup_path, headers=self.headers, timeout=WARMUP_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("Warmup request failed: %s", e)
            return
        if response.status_code != 200:
            logger.warning("Warmup request failed with status: %s", response.status_code)

    def teardown(self, environment):
        if not self._coordinates(environment) or not self.running:
            return
        self.running = False
        logger.info("Load test completed")

    def report(self, environment):
        if not self._coordinates(environment):
            return
        passed = self.collector.stop(self.name, self.target(environment))
        if not passed:
            logger.error("Scenario %s failed its thresholds", self.name)
            environment.process_exit_code = 1

    def send_to_master(self, client_id, data):
        data[self.name] = self.registry.drain()

    def receive_from_worker(self, client_id, data):
        snapshot = data.get(self.name)
        if snapshot:
            self.registry.merge(snapshot)

    def install(self, events):
        """Attach the run hooks to a Locust event hook set."""

        @events.test_start.add_listener
        def on_test_start(environment, **kwargs):
            self.setup(environment)

        @events.test_stop.add_listener
        def on_test_stop(environment, **kwargs):
            self.teardown(environment)

        @events.quitting.add_listener
        def on_quit(environment, **kwargs):
            self.report(environment)

        @events.request.add_listener
        def on_request(context=None, **kwargs):
            # requests made by another scenario's users carry its name
            if (context or {}).get("scenario", self.name) != self.name:
                return
            self.collector.on_request(**kwargs)

        events.report_to_master.add_listener(self.send_to_master)
        events.worker_report.add_listener(self.receive_from_worker)


class ScenarioUser(HttpUser):
    """Runs ``scenario.iteration`` back to back; think time is inside the iteration."""

    abstract = True
    wait_time = constant(0)
    scenario = None

    def context(self):
        return {"scenario": self.scenario.name}

    @task
    def run_iteration(self):
        self.scenario.iteration(self.client)
