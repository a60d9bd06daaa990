"""Kafka Connect REST client: registration, status and readiness gate."""

from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import requests

from .connectors.base import ConnectorDefinition
from .exceptions import ConnectorTimeoutError, UnexpectedResponseError
from .models import ConnectorStatus
from .polling import poll_until_found

logger = logging.getLogger(__name__)

ConnectorLike = Union[ConnectorDefinition, Dict[str, Any]]

# Errors that only mean "not registered or not reachable yet"
STATUS_TRANSIENT_ERRORS = (requests.RequestException, UnexpectedResponseError, ValueError)


class RegistrationOutcome(str, Enum):
    """Accepted results of ``POST /connectors``."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class KafkaConnectClient:
    """Thin client for one Kafka Connect worker's REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Kafka Connect client.

        Args:
            base_url: Worker REST endpoint, e.g. ``http://localhost:8083``
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        return self.session.request(method, self._url(path), **kwargs)

    @staticmethod
    def _check(response: requests.Response, expected: Iterable[int]) -> requests.Response:
        if response.status_code not in expected:
            raise UnexpectedResponseError(
                response.request.method if response.request is not None else "?",
                response.url,
                response.status_code,
                response.text,
            )
        return response

    @staticmethod
    def _payload(connector: ConnectorLike) -> Dict[str, Any]:
        if isinstance(connector, ConnectorDefinition):
            return connector.to_payload()
        return connector

    @staticmethod
    def _name(connector: Union[ConnectorLike, str]) -> str:
        if isinstance(connector, str):
            return connector
        if isinstance(connector, ConnectorDefinition):
            return connector.name
        return connector["name"]

    def create_connector(self, connector: ConnectorLike) -> requests.Response:
        """Submit a connector definition and return the raw response."""
        payload = self._payload(connector)
        logger.info(f"Creating connector {payload['name']} on {self.base_url}")
        return self._request("POST", "/connectors", json=payload)

    def register_connector(self, connector: ConnectorLike) -> RegistrationOutcome:
        """Create a connector, treating an existing one as success.

        Returns:
            CREATED on HTTP 201, ALREADY_EXISTS on HTTP 409

        Raises:
            UnexpectedResponseError: For any other status code
        """
        response = self._check(self.create_connector(connector), (201, 409))
        if response.status_code == 409:
            logger.info(f"Connector {self._name(connector)} already exists")
            return RegistrationOutcome.ALREADY_EXISTS
        return RegistrationOutcome.CREATED

    def list_connectors(self) -> List[str]:
        response = self._check(self._request("GET", "/connectors"), (200,))
        return list(response.json())

    def get_connector(self, name: str) -> Dict[str, Any]:
        """Connector info: name, config, tasks and type."""
        response = self._check(self._request("GET", f"/connectors/{name}"), (200,))
        return response.json()

    def connector_exists(self, name: str) -> bool:
        response = self._request("GET", f"/connectors/{name}")
        if response.status_code == 404:
            return False
        self._check(response, (200,))
        return True

    def get_connector_config(self, name: str) -> Dict[str, str]:
        response = self._check(self._request("GET", f"/connectors/{name}/config"), (200,))
        return response.json()

    def get_connector_status(self, name: str) -> ConnectorStatus:
        response = self._check(self._request("GET", f"/connectors/{name}/status"), (200,))
        return ConnectorStatus(**response.json())

    def delete_connector(self, name: str, *, missing_ok: bool = True) -> bool:
        """Delete a connector.

        Returns:
            True if deleted, False if it did not exist and ``missing_ok`` is set
        """
        response = self._request("DELETE", f"/connectors/{name}")
        if response.status_code == 404 and missing_ok:
            return False
        self._check(response, (200, 204))
        logger.info(f"Deleted connector {name}")
        return True

    def restart_connector(self, name: str, *, include_tasks: bool = False) -> None:
        params = {"includeTasks": "true"} if include_tasks else None
        self._check(
            self._request("POST", f"/connectors/{name}/restart", params=params),
            (200, 202, 204),
        )

    def is_running(self, name: str) -> bool:
        """Single readiness check, False on any transient error."""
        try:
            return self.get_connector_status(name).is_running
        except STATUS_TRANSIENT_ERRORS as e:
            logger.debug(f"Status check for {name} failed: {e}")
            return False

    def wait_for_running(
        self,
        name: str,
        timeout: float = 30.0,
        interval: float = 1.0,
        *,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> ConnectorStatus:
        """Block until the connector and all of its tasks are RUNNING.

        Raises:
            ConnectorTimeoutError: If the state was not reached within ``timeout``
        """
        result = poll_until_found(
            lambda: self.get_connector_status(name),
            timeout,
            interval,
            predicate=lambda status: status.is_running,
            transient=STATUS_TRANSIENT_ERRORS,
            target=f"connector {name}",
            clock=clock,
            sleep=sleep,
        )
        if not result.found:
            raise ConnectorTimeoutError(name, timeout, result.last_error)
        logger.info(f"Connector {name} is RUNNING with {len(result.value.tasks)} task(s)")
        return result.value

    def ensure_running(self, connector: ConnectorLike, timeout: float = 30.0) -> RegistrationOutcome:
        """Register a connector idempotently and wait for it to run."""
        outcome = self.register_connector(connector)
        self.wait_for_running(self._name(connector), timeout)
        return outcome

    def health_check(self) -> bool:
        """Check if the Connect worker answers on its root endpoint."""
        try:
            return self._request("GET", "/").status_code == 200
        except requests.RequestException as e:
            logger.warning(f"Health check failed for {self.base_url}: {e}")
            return False

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> KafkaConnectClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
