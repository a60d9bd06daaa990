"""Tests for the Kafka Connect REST client."""

import pytest
import requests
from unittest.mock import MagicMock, Mock
from lakehouse_cdc.connect import KafkaConnectClient, RegistrationOutcome
from lakehouse_cdc.connectors import POSTGRES_SOURCE_CONNECTOR
from lakehouse_cdc.exceptions import (
    ConnectorTimeoutError,
    PollTimeoutError,
    UnexpectedResponseError,
)
from lakehouse_cdc.models import ConnectorStatus


def make_response(status_code, json_data=None, method="GET", url="http://connect:8083/connectors"):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = "" if json_data is None else str(json_data)
    response.url = url
    response.request.method = method
    return response


def status_body(connector_state, *task_states):
    return {
        "name": "postgres-source",
        "connector": {"state": connector_state, "worker_id": "connect:8083"},
        "tasks": [
            {"id": i, "state": state, "worker_id": "connect:8083"}
            for i, state in enumerate(task_states)
        ],
        "type": "source",
    }


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestConnectorStatus:
    """Test the readiness predicate."""

    def test_running_with_running_tasks(self):
        status = ConnectorStatus(**status_body("RUNNING", "RUNNING", "RUNNING"))
        assert status.is_running

    def test_failed_task_is_not_running(self):
        """Test a single failed task makes the connector not ready."""
        status = ConnectorStatus(**status_body("RUNNING", "RUNNING", "FAILED"))
        assert not status.is_running
        assert [task.id for task in status.failed_tasks] == [1]

    def test_paused_connector_is_not_running(self):
        status = ConnectorStatus(**status_body("PAUSED", "RUNNING"))
        assert not status.is_running

    def test_no_tasks_counts_as_running(self):
        """Test a RUNNING connector without tasks passes the gate."""
        status = ConnectorStatus(**status_body("RUNNING"))
        assert status.is_running


class TestRegistration:
    """Test idempotent connector registration."""

    def setup_method(self):
        self.session = MagicMock()
        self.client = KafkaConnectClient("http://connect:8083/", session=self.session)

    def test_base_url_is_normalized(self):
        assert self.client.base_url == "http://connect:8083"

    def test_create_posts_payload(self):
        """Test the connector definition is posted as {name, config}."""
        self.session.request.return_value = make_response(201, method="POST")

        self.client.create_connector(POSTGRES_SOURCE_CONNECTOR)

        self.session.request.assert_called_once_with(
            "POST",
            "http://connect:8083/connectors",
            json=POSTGRES_SOURCE_CONNECTOR.to_payload(),
            timeout=10.0,
        )

    def test_register_created(self):
        self.session.request.return_value = make_response(201, method="POST")

        outcome = self.client.register_connector(POSTGRES_SOURCE_CONNECTOR)

        assert outcome is RegistrationOutcome.CREATED

    def test_register_twice_is_idempotent(self):
        """Test a second registration reports ALREADY_EXISTS instead of failing."""
        self.session.request.side_effect = [
            make_response(201, method="POST"),
            make_response(409, {"error_code": 409}, method="POST"),
        ]

        first = self.client.register_connector(POSTGRES_SOURCE_CONNECTOR)
        second = self.client.register_connector(POSTGRES_SOURCE_CONNECTOR)

        assert first is RegistrationOutcome.CREATED
        assert second is RegistrationOutcome.ALREADY_EXISTS

    def test_register_accepts_plain_payload(self):
        self.session.request.return_value = make_response(201, method="POST")
        payload = {"name": "custom", "config": {"connector.class": "x.Y"}}

        outcome = self.client.register_connector(payload)

        assert outcome is RegistrationOutcome.CREATED
        assert self.session.request.call_args.kwargs["json"] == payload

    def test_register_unexpected_status(self):
        """Test any other status surfaces as UnexpectedResponseError."""
        self.session.request.return_value = make_response(
            500, {"message": "boom"}, method="POST")

        with pytest.raises(UnexpectedResponseError) as exc:
            self.client.register_connector(POSTGRES_SOURCE_CONNECTOR)

        assert exc.value.status_code == 500
        assert exc.value.method == "POST"
        assert "HTTP 500" in str(exc.value)

    def test_register_bad_request(self):
        self.session.request.return_value = make_response(400, method="POST")

        with pytest.raises(UnexpectedResponseError, match="HTTP 400"):
            self.client.register_connector(POSTGRES_SOURCE_CONNECTOR)


class TestReadinessGate:
    """Test waiting for RUNNING state."""

    def setup_method(self):
        self.session = MagicMock()
        self.client = KafkaConnectClient("http://connect:8083", session=self.session)
        self.clock = FakeClock()

    def wait(self, timeout=30, interval=1):
        return self.client.wait_for_running(
            "postgres-source", timeout, interval, clock=self.clock, sleep=self.clock.sleep)

    def test_returns_once_running(self):
        """Test transient failures and non-running states are retried."""
        self.session.request.side_effect = [
            requests.ConnectionError("connection refused"),
            make_response(404, {"error_code": 404}),
            make_response(200, status_body("RUNNING", "UNASSIGNED")),
            make_response(200, status_body("RUNNING", "RUNNING")),
        ]

        status = self.wait()

        assert status.is_running
        assert self.session.request.call_count == 4
        assert self.clock.sleeps == [1, 1, 1]

    def test_status_url(self):
        self.session.request.return_value = make_response(200, status_body("RUNNING", "RUNNING"))

        self.wait()

        self.session.request.assert_called_with(
            "GET", "http://connect:8083/connectors/postgres-source/status", timeout=10.0)

    def test_timeout_raises_connector_timeout(self):
        """Test a connector that never runs raises ConnectorTimeoutError."""
        self.session.request.return_value = make_response(404, {"error_code": 404})

        with pytest.raises(ConnectorTimeoutError) as exc:
            self.wait(timeout=5)

        assert exc.value.name == "postgres-source"
        assert exc.value.timeout == 5
        assert isinstance(exc.value, PollTimeoutError)
        assert isinstance(exc.value.last_error, UnexpectedResponseError)
        assert "Connector postgres-source did not reach RUNNING state within 5s" in str(exc.value)

    def test_failed_task_times_out(self):
        self.session.request.return_value = make_response(
            200, status_body("RUNNING", "FAILED"))

        with pytest.raises(ConnectorTimeoutError):
            self.wait(timeout=3)

        assert self.clock.now == 3

    def test_running_state_is_stable(self):
        """Test a subsequent check after success still sees RUNNING."""
        self.session.request.return_value = make_response(200, status_body("RUNNING", "RUNNING"))

        self.wait()

        assert self.client.is_running("postgres-source")
        assert self.client.is_running("postgres-source")

    def test_is_running_false_on_connection_error(self):
        self.session.request.side_effect = requests.ConnectionError("down")

        assert self.client.is_running("postgres-source") is False

    def test_get_status_does_not_retry(self):
        """Test direct status reads surface errors immediately."""
        self.session.request.return_value = make_response(500)

        with pytest.raises(UnexpectedResponseError):
            self.client.get_connector_status("postgres-source")
        assert self.session.request.call_count == 1

    def test_ensure_running(self):
        self.session.request.side_effect = [
            make_response(409, method="POST"),
            make_response(200, status_body("RUNNING", "RUNNING")),
        ]

        outcome = self.client.ensure_running(POSTGRES_SOURCE_CONNECTOR, timeout=5)

        assert outcome is RegistrationOutcome.ALREADY_EXISTS


class TestConnectorManagement:
    """Test list, lookup, delete and health endpoints."""

    def setup_method(self):
        self.session = MagicMock()
        self.client = KafkaConnectClient("http://connect:8083", session=self.session)

    def test_list_connectors(self):
        self.session.request.return_value = make_response(200, ["postgres-source"])

        assert self.client.list_connectors() == ["postgres-source"]

    def test_connector_exists(self):
        self.session.request.side_effect = [make_response(200, {}), make_response(404)]

        assert self.client.connector_exists("postgres-source") is True
        assert self.client.connector_exists("missing") is False

    def test_get_connector_config(self):
        config = {"connector.class": "io.debezium.connector.postgresql.PostgresConnector"}
        self.session.request.return_value = make_response(200, config)

        assert self.client.get_connector_config("postgres-source") == config

    def test_delete_connector(self):
        self.session.request.return_value = make_response(204, method="DELETE")

        assert self.client.delete_connector("postgres-source") is True

    def test_delete_missing_connector(self):
        """Test deleting a missing connector is not an error by default."""
        self.session.request.return_value = make_response(404, method="DELETE")

        assert self.client.delete_connector("missing") is False
        with pytest.raises(UnexpectedResponseError):
            self.client.delete_connector("missing", missing_ok=False)

    def test_restart_with_tasks(self):
        self.session.request.return_value = make_response(202, method="POST")

        self.client.restart_connector("postgres-source", include_tasks=True)

        self.session.request.assert_called_once_with(
            "POST",
            "http://connect:8083/connectors/postgres-source/restart",
            params={"includeTasks": "true"},
            timeout=10.0,
        )

    def test_health_check(self):
        self.session.request.return_value = make_response(200, {"version": "3.6.0"})
        assert self.client.health_check() is True

        self.session.request.side_effect = requests.ConnectionError("down")
        assert self.client.health_check() is False

    def test_context_manager_closes_session(self):
        with self.client as client:
            assert client is self.client
        self.session.close.assert_called_once()
