"""Cloud inventory lookups used to give alarms readable VM and tenant names."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from alerthub.config import settings

logger = logging.getLogger("alerthub.enrichment")


class CloudInventory(Protocol):
    region: str

    async def list_alarms(self) -> list[dict]: ...

    async def list_instances(self) -> dict[str, str]: ...

    async def get_instance_name(self, instance_id: str) -> str: ...

    async def get_compartment_name(self, compartment_id: str) -> str: ...


class InventoryError(Exception):
    pass


class HttpCloudInventory:
    """Inventory backed by an HTTP lookup service.

    Endpoints: ``/alarms?state=FIRING``, ``/instances``, ``/instances/{id}``,
    ``/compartments/{id}``; each returns JSON.
    """

    def __init__(
        self,
        base_url: str | None = None,
        region: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.region = region or settings.inventory_region
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.inventory_url,
            timeout=15.0,
            transport=transport,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, params: dict | None = None):
        try:
            resp = await self._http.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise InventoryError(f"{path}: {exc}") from exc

    async def list_alarms(self) -> list[dict]:
        body = await self._get("/alarms", params={"state": "FIRING"})
        return body.get("items", []) if isinstance(body, dict) else body

    async def list_instances(self) -> dict[str, str]:
        body = await self._get("/instances")
        items = body.get("items", []) if isinstance(body, dict) else body
        return {i["id"]: i.get("displayName", i["id"]) for i in items if i.get("id")}

    async def get_instance_name(self, instance_id: str) -> str:
        body = await self._get(f"/instances/{instance_id}")
        return body["displayName"]

    async def get_compartment_name(self, compartment_id: str) -> str:
        body = await self._get(f"/compartments/{compartment_id}")
        name = body["name"]
        # Service-managed compartments are reported under their parent's name.
        parent_id = body.get("parentCompartmentId")
        if parent_id and (name == "ManagedCompartmentForPaaS" or "ocid1." in name):
            try:
                parent = await self._get(f"/compartments/{parent_id}")
                name = parent["name"]
            except (InventoryError, KeyError):
                logger.warning("Could not fetch parent compartment %s", parent_id)
        return name


class EmptyInventory:
    """Used when no inventory service is configured."""

    def __init__(self, region: str | None = None) -> None:
        self.region = region or settings.inventory_region

    async def list_alarms(self) -> list[dict]:
        return []

    async def list_instances(self) -> dict[str, str]:
        return {}

    async def get_instance_name(self, instance_id: str) -> str:
        raise InventoryError("no inventory service configured")

    async def get_compartment_name(self, compartment_id: str) -> str:
        raise InventoryError("no inventory service configured")

    async def close(self) -> None:
        return None
