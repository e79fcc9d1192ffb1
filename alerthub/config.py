"""Service configuration — retention, heartbeat, enrichment and telemetry knobs."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "ALERTHUB_"}

    # Retention
    max_alerts: int = 10000
    max_raw_webhooks: int = 50
    max_log_alerts: int = 10000
    logs_dir: str = "/opt/alerthub/logs"

    # Scheduler
    wipe_hour: int = 0
    wipe_minute: int = 5
    timezone: str = "America/New_York"
    prune_interval_hours: int = 6
    dedupe_staleness_hours: int = 6
    scheduler_poll_seconds: float = 30.0

    # Heartbeat feed
    heartbeat_ws_url: str = "wss://heartbeat.local:4950"
    heartbeat_timeout_seconds: float = 10.0
    heartbeat_trigger: str = "GetConStatus~Y"

    # Cloud inventory (alarm enrichment)
    inventory_url: str = ""
    inventory_region: str = "us-ashburn-1"
    enrichment_chunk_size: int = 5
    enrichment_timeout_seconds: float = 60.0
    tenant_mappings: dict[str, str] = {}

    # Telemetry
    otlp_endpoint: str = ""
    environment: str = ""
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000


settings = Settings()
