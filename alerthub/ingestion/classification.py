"""Server vs database classification of infrastructure alerts."""

from __future__ import annotations

import logging

from alerthub.ingestion.models import AlertDomain

logger = logging.getLogger("alerthub.ingestion")

SERVER_QUERY_METRICS = ("CpuUtilization", "MemoryUtilization", "DiskUtilization", "NetworkIn", "NetworkOut")
DATABASE_QUERY_METRICS = ("Database", "Tablespace", "DBCPUUtilization", "SessionCount")

SERVER_NAME_KEYWORDS = ("server", "vm", "instance")
SERVER_SUMMARY_KEYWORDS = ("server", "vm", "cpu", "memory", "disk")
DATABASE_NAME_KEYWORDS = ("database", "db", "oracle")
DATABASE_SUMMARY_KEYWORDS = ("database", "db", "sql")


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def _mentions(text: str, keywords) -> bool:
    return any(k in text for k in keywords)


def classify_alert_domain(body: dict) -> AlertDomain:
    """Classify an alert body as server or database.

    Signals in priority order: server metric in the query, database metric in
    the query, keywords in the alarm name or summary, then ``server``.
    """
    if not isinstance(body, dict):
        body = {}
    query = _text(body.get("query"))
    name = _text(body.get("name")).lower()
    summary = _text(body.get("alarmSummary")).lower()

    if _mentions(query, SERVER_QUERY_METRICS):
        return AlertDomain.SERVER
    if _mentions(query, DATABASE_QUERY_METRICS):
        return AlertDomain.DATABASE

    if _mentions(name, SERVER_NAME_KEYWORDS) or _mentions(summary, SERVER_SUMMARY_KEYWORDS):
        return AlertDomain.SERVER
    if _mentions(name, DATABASE_NAME_KEYWORDS) or _mentions(summary, DATABASE_SUMMARY_KEYWORDS):
        return AlertDomain.DATABASE

    logger.warning("Unable to determine alert domain, defaulting to server: name=%r", name)
    return AlertDomain.SERVER
