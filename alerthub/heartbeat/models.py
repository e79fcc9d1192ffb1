"""Heartbeat feed models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

SERVICES = ("WEB", "DB", "MTSERVER", "IVRRPT")
KNOWN_STATUSES = ("GREEN", "RED", "ORANGE")
UNKNOWN_STATUS = "..."


class HeartbeatSystem(BaseModel):
    """One monitored site as reported by the heartbeat feed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    site: str = Field(alias="SITE", default="")
    site_name: str = Field(alias="SITENAME", default="")
    site_type: str = Field(alias="SITETYPE", default="STANDALONE")
    web: str | None = Field(alias="WEB", default=UNKNOWN_STATUS)
    db: str | None = Field(alias="DB", default=UNKNOWN_STATUS)
    mtserver: str | None = Field(alias="MTSERVER", default=UNKNOWN_STATUS)
    ivrrpt: str | None = Field(alias="IVRRPT", default=UNKNOWN_STATUS)
    updated_at: str = Field(alias="UPD_DATETIME", default="")

    def status_of(self, service: str) -> str:
        return getattr(self, service.lower()) or UNKNOWN_STATUS

    def statuses(self) -> list[str]:
        return [self.status_of(s) for s in SERVICES]


class HeartbeatAlert(BaseModel):
    id: str
    site: str
    site_name: str
    service: str
    status: str
    severity: str
    message: str
    timestamp: str
    site_type: str
    critical_system: bool = False


class HeartbeatSummary(BaseModel):
    total: int = 0
    healthy: int = 0
    warning: int = 0
    critical: int = 0
    critical_systems: list[str] = []
