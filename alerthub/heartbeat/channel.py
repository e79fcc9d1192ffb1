"""Request/response client for the heartbeat WebSocket feed."""

from __future__ import annotations

import asyncio
import json
import logging

import aiohttp
from opentelemetry import trace
from pydantic import ValidationError

from alerthub.config import settings
from alerthub.heartbeat.models import HeartbeatSystem

logger = logging.getLogger("alerthub.heartbeat")
tracer = trace.get_tracer(__name__)


class HeartbeatUnavailable(Exception):
    """The feed did not produce a usable reply in time."""


class HeartbeatChannel:
    """Sends the trigger string and waits for one JSON array of site snapshots."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        trigger: str | None = None,
    ) -> None:
        self._url = url or settings.heartbeat_ws_url
        self._timeout = timeout or settings.heartbeat_timeout_seconds
        self._trigger = trigger or settings.heartbeat_trigger

    async def fetch_systems(self) -> list[HeartbeatSystem]:
        try:
            raw = await asyncio.wait_for(self._exchange(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Heartbeat connection timeout after %.0fs", self._timeout)
            raise HeartbeatUnavailable("Heartbeat connection timeout") from exc
        except aiohttp.ClientError as exc:
            logger.error("Heartbeat WebSocket error: %s", exc)
            raise HeartbeatUnavailable("Heartbeat WebSocket error") from exc

        with tracer.start_as_current_span("heartbeat-parse") as span:
            systems = parse_systems(raw)
            span.set_attribute("heartbeat.system_count", len(systems))
        logger.info("Heartbeat snapshot received: %d systems", len(systems))
        return systems

    async def _exchange(self) -> str:
        async with aiohttp.ClientSession() as session:
            async with session.ws_connect(self._url) as ws:
                await ws.send_str(self._trigger)
                msg = await ws.receive()
                if msg.type != aiohttp.WSMsgType.TEXT:
                    raise HeartbeatUnavailable(f"Heartbeat WebSocket closed unexpectedly ({msg.type.name})")
                return msg.data


def parse_systems(raw: str) -> list[HeartbeatSystem]:
    """Parse one feed reply. Invalid site records are skipped; an invalid reply raises."""
    try:
        data = json.loads(raw)
        if not data:
            return []
        if not isinstance(data, list):
            raise ValueError("expected a JSON array")
    except ValueError as exc:
        logger.error("Failed to parse heartbeat data: %s", exc)
        raise HeartbeatUnavailable("Failed to parse heartbeat data") from exc

    systems = []
    for index, item in enumerate(data):
        try:
            systems.append(HeartbeatSystem.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping invalid heartbeat record %d: %s", index, exc)
    return systems
