"""Client for the Cruise Control REST API that rebalances broker load."""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from email.message import Message
from typing import Any

from .backoff import ConstantBackoffConfig, retry

_log = logging.getLogger(__name__)

BASE_PATH = "kafkacruisecontrol"
REMOVE_BROKER_ACTION = "remove_broker"
CRUISE_CONTROL_STATE_ACTION = "state"
ADD_BROKER_ACTION = "add_broker"
GET_TASK_LIST_ACTION = "user_tasks"
KAFKA_CLUSTER_STATE_ACTION = "kafka_cluster_state"
REBALANCE_ACTION = "rebalance"
SERVICE_NAME_TEMPLATE = "{}-cruisecontrol-svc"
SERVICE_PORT = 8090

DEFAULT_RETRY_CONFIG = ConstantBackoffConfig(delay=10.0, max_retries=5)
DEFAULT_POLL_INTERVAL = 20.0

_NO_PARTITION_COUNT = 99999.0


class CruiseControlError(Exception):
    """Cruise Control could not be reached or answered with an error."""


class CruiseControlNotReadyError(CruiseControlError):
    """Cruise Control has no proposal ready yet."""

    def __init__(self) -> None:
        super().__init__("cruise-control is not ready")


class _NonOkResponseError(CruiseControlError):
    """A POST was answered with a status other than 200 or 202."""


@dataclass(frozen=True)
class _Response:
    status: int
    reason: str
    headers: Message
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)


class CruiseControl:
    """Talks to the Cruise Control instance that belongs to one Kafka cluster."""

    def __init__(
        self,
        namespace: str,
        cluster_name: str,
        endpoint: str = "",
        retry_config: ConstantBackoffConfig = DEFAULT_RETRY_CONFIG,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.namespace = namespace
        self.cluster_name = cluster_name
        self.endpoint = endpoint
        self.retry_config = retry_config
        self.poll_interval = poll_interval

    def url(self, action: str, options: dict[str, str]) -> str:
        """The request URL for an action with the given query options."""
        query = "&".join(f"{key}={value}" for key, value in options.items())
        if self.endpoint:
            host = self.endpoint
        else:
            host = (
                f"{SERVICE_NAME_TEMPLATE.format(self.cluster_name)}."
                f"{self.namespace}.svc.cluster.local:{SERVICE_PORT}"
            )
        return f"http://{host}/{BASE_PATH}/{action}?{query}"

    def _request(self, method: str, action: str, options: dict[str, str]) -> _Response:
        if method == "POST":
            request = urllib.request.Request(
                self.url(action, options),
                data=b"",
                method="POST",
                headers={"Content-Type": "text/plain"},
            )
        else:
            request = urllib.request.Request(self.url(action, options), method=method)
        try:
            with urllib.request.urlopen(request) as raw:
                return _Response(raw.status, raw.reason, raw.headers, raw.read())
        except urllib.error.HTTPError as err:
            try:
                body = err.read()
            finally:
                err.close()
            return _Response(err.code, str(err.reason), err.headers, body)
        except (urllib.error.URLError, OSError) as err:
            _log.error("error during talking to cruise-control: %s", err)
            raise CruiseControlError(f"error during talking to cruise-control: {err}") from err

    def _get(self, action: str, options: dict[str, str]) -> _Response:
        response = self._request("GET", action, options)
        if response.status != 200:
            message = (
                f"Non 200 response from cruise-control: {response.status} {response.reason}"
            )
            _log.error("error during talking to cruise-control: %s", message)
            raise CruiseControlError(message)
        return response

    def _post(self, action: str, options: dict[str, str]) -> _Response:
        response = self._request("POST", action, options)
        if response.status not in (200, 202):
            _log.error(
                "error during talking to cruise-control: Non 200 response: %s %s",
                response.status,
                response.reason,
            )
            raise _NonOkResponseError("non 200 response from cruise-control")
        return response

    def _broker_state(self) -> dict[str, Any]:
        response = self._get(KAFKA_CLUSTER_STATE_ACTION, {"json": "true"})
        try:
            state = response.json()["KafkaBrokerState"]
        except (KeyError, TypeError) as err:
            raise CruiseControlError("unexpected kafka cluster state response") from err
        if not isinstance(state, dict):
            raise CruiseControlError("unexpected kafka cluster state response")
        return state

    def check_ready(self) -> None:
        """Raise CruiseControlNotReadyError unless the analyzer has a proposal ready."""
        response = self._get(
            CRUISE_CONTROL_STATE_ACTION, {"substates": "ANALYZER", "json": "true"}
        )
        try:
            ready = response.json()["AnalyzerState"]["isProposalReady"]
        except (KeyError, TypeError) as err:
            raise CruiseControlError("unexpected state response") from err
        if not ready:
            _log.info("could not handle graceful operation because cruise-control is not ready")
            raise CruiseControlNotReadyError()

    def is_broker_ready(self, broker_id: str) -> bool:
        """Whether Cruise Control sees log dirs for brokers up to ``broker_id``."""
        state = self._broker_state()
        try:
            expected = int(broker_id)
        except ValueError:
            expected = 0
        online = state.get("OnlineLogDirsByBrokerId")
        if not isinstance(online, dict):
            raise CruiseControlError("unexpected kafka cluster state response")
        if len(online) == expected + 1:
            _log.info("broker %s became available in cruise-control", broker_id)
            return True
        return False

    def broker_with_least_partitions(self) -> str:
        """The id of the broker holding the fewest replicas, or "" if none is known."""
        self.check_ready()
        counts = self._broker_state().get("ReplicaCountByBrokerId")
        if not isinstance(counts, dict):
            raise CruiseControlError("unexpected kafka cluster state response")
        least = _NO_PARTITION_COUNT
        chosen = ""
        for broker_id, count in counts.items():
            if least > float(count):
                least = float(count)
                chosen = broker_id
        return chosen

    def _post_with_retry(self, action: str, options: dict[str, str]) -> _Response:
        def attempt() -> _Response:
            try:
                return self._post(action, options)
            except _NonOkResponseError:
                _log.info("trying to communicate with cc")
                raise

        return retry(attempt, self.retry_config)

    def upscale(self, broker_id: str) -> None:
        """Wait for a new broker to appear, then move load onto it."""
        self.check_ready()

        def wait_ready() -> None:
            if not self.is_broker_ready(broker_id):
                raise CruiseControlError("broker is not ready yet")

        retry(wait_ready, self.retry_config)
        response = self._post_with_retry(
            ADD_BROKER_ACTION, {"json": "true", "dryrun": "false", "brokerid": broker_id}
        )
        _log.info("Initiated upscale in cruise control")
        self.wait_for_task(response.headers.get("User-Task-Id", ""))

    def downsize(self, broker_id: str) -> None:
        """Move all load off a broker that is about to be removed."""
        self.check_ready()
        response = self._post_with_retry(
            REMOVE_BROKER_ACTION, {"brokerid": broker_id, "dryrun": "false", "json": "true"}
        )
        _log.info("Initiated downsize in cruise control")
        self.wait_for_task(response.headers.get("User-Task-Id", ""))

    def _rebalance(self, options: dict[str, str]) -> None:
        self.check_ready()
        response = self._post(REBALANCE_ACTION, options)
        _log.info("Initiated rebalance in cruise control")
        self.wait_for_task(response.headers.get("User-Task-Id", ""))

    def rebalance(self) -> None:
        """Rebalance the whole cluster."""
        self._rebalance({"dryrun": "false", "json": "true"})

    def run_preferred_leader_election(self) -> None:
        """Move partition leadership back to the preferred replicas."""
        self._rebalance(
            {"dryrun": "false", "json": "true", "goals": "PreferredLeaderElectionGoal"}
        )

    def wait_for_task(self, task_id: str) -> None:
        """Look up a task once, pausing one poll interval for every unfinished entry."""
        response = self._get(
            GET_TASK_LIST_ACTION, {"json": "true", "user_task_ids": task_id}
        )
        try:
            tasks = response.json()["userTasks"]
            statuses = [task["Status"] for task in tasks]
        except (KeyError, TypeError) as err:
            raise CruiseControlError("unexpected task list response") from err
        for status in statuses:
            if status != "Completed":
                _log.info("Cruise control task still running, taskID=%s", task_id)
                time.sleep(self.poll_interval)