"""Base classes for Kafka Connect connector definitions."""

from __future__ import annotations
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


class ConnectorDefinition(BaseModel):
    """Base configuration for a connector submitted to ``POST /connectors``."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Connector name, unique per Connect cluster")
    connector_class: str = Field(..., min_length=1, description="Fully qualified connector class")
    tasks_max: Optional[int] = Field(None, description="Maximum number of tasks")
    extra_properties: Dict[str, Any] = Field(
        default_factory=dict, description="Additional raw connector properties")

    @field_validator("tasks_max")
    @classmethod
    def validate_tasks_max(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("tasks_max must be positive")
        return v

    def connector_properties(self) -> Dict[str, Any]:
        """Connector-specific properties, overridden by subclasses."""
        return {}

    def to_config(self) -> Dict[str, str]:
        """Render the flat string map Kafka Connect expects under ``config``."""
        props: Dict[str, Any] = {"connector.class": self.connector_class}
        if self.tasks_max is not None:
            props["tasks.max"] = self.tasks_max
        props.update(self.connector_properties())
        props.update(self.extra_properties)
        return {key: _stringify(value) for key, value in props.items() if value is not None}

    def to_payload(self) -> Dict[str, Any]:
        """Body of the ``POST /connectors`` request."""
        return {"name": self.name, "config": self.to_config()}


class RawConnector(ConnectorDefinition):
    """Connector given as a plain ``{name, config}`` document."""

    connector_class: str = Field(default="", description="Taken from config['connector.class']")
    config: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> RawConnector:
        config = {key: _stringify(value) for key, value in payload.get("config", {}).items()}
        connector_class = config.get("connector.class")
        if not connector_class:
            raise ValueError("config['connector.class'] is required")
        return cls(name=payload.get("name", ""), connector_class=connector_class, config=config)

    def connector_properties(self) -> Dict[str, Any]:
        return dict(self.config)


def unwrap_transform(drop_tombstones: bool = True, delete_handling: str = "rewrite") -> Dict[str, str]:
    """Debezium ``ExtractNewRecordState`` SMT properties under the alias ``unwrap``."""
    return {
        "transforms.unwrap.type": "io.debezium.transforms.ExtractNewRecordState",
        "transforms.unwrap.drop.tombstones": _stringify(drop_tombstones),
        "transforms.unwrap.delete.handling.mode": delete_handling,
    }
