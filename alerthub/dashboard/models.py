"""Presentation-layer models for the dashboard alert stream."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class Source(str, Enum):
    LOGS = "Application Logs"
    INFRASTRUCTURE = "Infrastructure Alerts"
    HEARTBEAT = "Application Heartbeat"


class PresentationSeverity(str, Enum):
    CRITICAL = "Critical"
    WARNING = "Warning"
    ERROR = "Error"
    INFO = "Info"


class Category(str, Enum):
    SERVER = "server"
    DATABASE = "database"
    HEARTBEAT = "heartbeat"
    LOGS = "logs"


class ServiceStatus(BaseModel):
    name: str
    status: str  # OK / WARN / ERR


class AlertFilters(BaseModel):
    """Dashboard filters. An empty ``source`` selects nothing."""

    severity: list[PresentationSeverity] = []
    source: list[Source] = []
    search_text: str = ""
    dynamic_filter: str = ""
    region: str = ""
    resource_type: str = ""


class PresentationAlert(BaseModel):
    id: str
    source: Source
    severity: PresentationSeverity
    title: str
    description: str
    timestamp: datetime | None = None
    category: Category
    site: str | None = None
    services: list[ServiceStatus] = []

    # Infrastructure
    region: str | None = None
    compartment: str | None = None
    metric_name: str | None = None
    tenant: str | None = None
    vm: str | None = None
    alert_type: str | None = None

    # Log pipeline
    channel: str | None = None
    short_message: str | None = None
    full_message: str | None = None

    # Heartbeat
    service: str | None = None
    critical_system: bool = False
