"""Expand heartbeat snapshots into one alert-like record per site and service."""

from __future__ import annotations

from alerthub.heartbeat.models import (
    KNOWN_STATUSES,
    SERVICES,
    HeartbeatAlert,
    HeartbeatSummary,
    HeartbeatSystem,
)

CRITICAL_SYSTEM_FRAGMENTS = (
    "LOCATIONSERVER", "HAPROXY", "CONFIGSERVICEWS",
    "QRYDEAPPSERVER", "QRYDE", "OSRMSERVER",
    "PENQUIS_SS_MAINE", "WPSITE", "GPSVOXQRYDETRACKER",
    "ESSTS_CTSNOVUS", "_AAL", "-GSE",
)

_SEVERITY = {"RED": "critical", "ORANGE": "medium", "GREEN": "info"}


def is_critical_system(site_name: str | None) -> bool:
    upper = (site_name or "").upper()
    return any(fragment in upper for fragment in CRITICAL_SYSTEM_FRAGMENTS)


def _message(system: HeartbeatSystem, service: str, status: str) -> str:
    site = system.site_name
    if status == "RED":
        return f"{service} service is down on {site}"
    if status == "ORANGE":
        return f"{service} service has warnings on {site}"
    if system.site_type == "STANDALONE":
        return f"{site} system is operational"
    return f"{service} service on {site} is operational"


def interpret(systems: list[HeartbeatSystem]) -> list[HeartbeatAlert]:
    """One record per (system, service) with a known status, healthy ones included."""
    alerts = []
    for system in systems:
        critical = is_critical_system(system.site_name)
        for service in SERVICES:
            status = system.status_of(service)
            if status not in KNOWN_STATUSES:
                continue
            alerts.append(HeartbeatAlert(
                id=f"heartbeat-{system.site}-{service}-{system.updated_at}",
                site=system.site,
                site_name=system.site_name,
                service=service,
                status=status,
                severity=_SEVERITY[status],
                message=_message(system, service, status),
                timestamp=system.updated_at,
                site_type=system.site_type,
                critical_system=critical,
            ))
    return alerts


def summarize(systems: list[HeartbeatSystem]) -> HeartbeatSummary:
    """Healthy/warning/critical counts. STANDALONE systems are judged on WEB only."""
    summary = HeartbeatSummary(total=len(systems))
    for system in systems:
        statuses = system.statuses() if system.site_type == "MULTI" else [system.web]
        if "RED" in statuses:
            summary.critical += 1
        elif "ORANGE" in statuses:
            summary.warning += 1
        if not any(s in ("RED", "ORANGE") for s in system.statuses()):
            summary.healthy += 1
        if is_critical_system(system.site_name):
            summary.critical_systems.append(system.site_name)
    return summary
