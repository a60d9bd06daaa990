"""Data models for the CDC lakehouse harness."""

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

RUNNING = "RUNNING"


class User(BaseModel):
    """Row of the ``users`` source table."""

    id: int
    email: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Order(BaseModel):
    """Row of the ``orders`` source table."""

    id: int
    user_id: int
    total_amount: Decimal
    status: str = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConnectorState(BaseModel):
    """State of the connector instance itself."""

    state: str
    worker_id: Optional[str] = None
    trace: Optional[str] = None


class TaskState(BaseModel):
    """State of one connector task."""

    id: int = 0
    state: str
    worker_id: Optional[str] = None
    trace: Optional[str] = None


class ConnectorStatus(BaseModel):
    """Response of ``GET /connectors/{name}/status``."""

    name: Optional[str] = None
    connector: ConnectorState
    tasks: List[TaskState] = Field(default_factory=list)
    type: Optional[str] = None  # "source" or "sink"

    @property
    def is_running(self) -> bool:
        """Connector and every one of its tasks report RUNNING."""
        return self.connector.state == RUNNING and all(
            task.state == RUNNING for task in self.tasks
        )

    @property
    def failed_tasks(self) -> List[TaskState]:
        return [task for task in self.tasks if task.state == "FAILED"]


class QueryColumn(BaseModel):
    """Column metadata of a Trino result set."""

    name: str
    type: str


class QueryResult(BaseModel):
    """Fully materialized Trino result set."""

    columns: List[QueryColumn] = Field(default_factory=list)
    data: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def __len__(self) -> int:
        return len(self.data)
