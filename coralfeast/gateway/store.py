"""Client for the remote pond store, the eventually-consistent source of truth.

The engine only ever talks to the store through the Slot Action
Gateway.  ``HttpPondStore`` speaks the game backend's REST API; any
object implementing ``PondStateStore`` can stand in for it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from coralfeast.gateway.snapshots import PondSnapshot, SlotSnapshot

if TYPE_CHECKING:
    from coralfeast.pond.catalog import Catalog
    from coralfeast.pond.slot import HazardType

logger = logging.getLogger(__name__)


class SlotAction(Enum):
    """Slot actions understood by the remote store."""

    STOCK = "stock"
    FEED = "feed"
    PLANT = "plant"
    SUPPLEMENT = "supplement"
    HARVEST = "harvest"
    MARK_DEAD = "mark-dead"
    ADVANCE = "advance"


class PondStoreError(Exception):
    """The remote store could not be reached or refused a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PondStateStore(Protocol):
    """Collaborator contract for the remote pond store."""

    async def fetch_pond(self, player_id: str) -> PondSnapshot | None:
        """Return the player's pond, or None if they have none yet."""
        ...

    async def post_slot_action(
        self,
        pond_id: int | str,
        slot_id: int | str,
        action: SlotAction,
        payload: dict[str, Any] | None = None,
    ) -> SlotSnapshot | None:
        """Apply ``action`` to a slot and return its new state."""
        ...

    async def resolve_issue(
        self,
        pond_id: int | str,
        slot_id: int | str,
        hazard: HazardType,
    ) -> SlotSnapshot | None:
        """Clear a hazard on a slot and return its new state."""
        ...

    async def raise_issue(
        self,
        pond_id: int | str,
        slot_id: int | str,
        hazard: HazardType,
    ) -> SlotSnapshot | None:
        """Record a hazard on a slot and return its new state."""
        ...

    async def fetch_market_bonus(self) -> tuple[float, float] | None:
        """Return ``(multiplier, remaining_seconds)`` of the market bonus."""
        ...


class HttpPondStore:
    """``PondStateStore`` backed by the game's REST API.

    Requests are not retried; a failed request raises ``PondStoreError``
    and the gateway falls back to a full resync.
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str,
        user_id: str,
        *,
        catalog: Catalog | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the store client.

        Args:
            base_url: Root URL of the backend (without ``/api/v1``).
            user_id: Player identifier sent with every write.
            catalog: Catalog used to resolve plant effects in snapshots.
            timeout: Request timeout in seconds.
            client: Pre-built client (tests inject a mock transport).
        """
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.catalog = catalog
        self._timeout = timeout
        self._client = client

    async def __aenter__(self) -> HttpPondStore:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Create the HTTP client if none was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                headers={"Accept": "application/json"},
            )
            logger.debug("HttpPondStore client started for %s", self.base_url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("HttpPondStore client closed")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the ``data`` member of the response.

        Raises:
            PondStoreError: On transport errors, non-2xx responses or
                undecodable bodies.
        """
        if self._client is None:
            await self.start()
        assert self._client is not None

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise PondStoreError(msg) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error:
            message = payload.get("message") if isinstance(payload, dict) else None
            msg = message or f"{method} {path} returned {response.status_code}"
            raise PondStoreError(msg, status_code=response.status_code)

        return payload.get("data") if isinstance(payload, dict) else None

    def _slot_path(self, pond_id: int | str, slot_id: int | str) -> str:
        return f"/api/v1/ponds/{pond_id}/slots/{slot_id}"

    def _slot_snapshot(self, data: Any) -> SlotSnapshot | None:
        if not isinstance(data, dict):
            return None
        return SlotSnapshot.from_payload(data, self.catalog)

    async def fetch_pond(self, player_id: str) -> PondSnapshot | None:
        """Return the first pond owned by ``player_id``, or None."""
        data = await self._request("GET", "/api/v1/ponds", params={"user_id": player_id})
        ponds = data if isinstance(data, list) else []
        if not ponds:
            return None
        return PondSnapshot.from_payload(ponds[0], self.catalog)

    async def post_slot_action(
        self,
        pond_id: int | str,
        slot_id: int | str,
        action: SlotAction,
        payload: dict[str, Any] | None = None,
    ) -> SlotSnapshot | None:
        """POST ``/ponds/{pond}/slots/{slot}/{action}``."""
        body = {"user_id": self.user_id, **(payload or {})}
        data = await self._request(
            "POST",
            f"{self._slot_path(pond_id, slot_id)}/{action.value}",
            json=body,
        )
        return self._slot_snapshot(data)

    async def resolve_issue(
        self,
        pond_id: int | str,
        slot_id: int | str,
        hazard: HazardType,
    ) -> SlotSnapshot | None:
        """POST ``/ponds/{pond}/slots/{slot}/issues/{hazard}/resolve``."""
        data = await self._request(
            "POST",
            f"{self._slot_path(pond_id, slot_id)}/issues/{hazard.value}/resolve",
            json={"user_id": self.user_id},
        )
        return self._slot_snapshot(data)

    async def raise_issue(
        self,
        pond_id: int | str,
        slot_id: int | str,
        hazard: HazardType,
    ) -> SlotSnapshot | None:
        """POST ``/ponds/{pond}/slots/{slot}/issues/{hazard}``."""
        data = await self._request(
            "POST",
            f"{self._slot_path(pond_id, slot_id)}/issues/{hazard.value}",
            json={"user_id": self.user_id},
        )
        return self._slot_snapshot(data)

    async def fetch_market_bonus(self) -> tuple[float, float] | None:
        """Return the double-offer listing as ``(multiplier, remaining)``."""
        data = await self._request("GET", "/api/v1/market/listings/double-offer")
        if not isinstance(data, dict):
            return None
        if not data.get("active", True):
            return (1.0, 0.0)
        try:
            multiplier = float(data.get("multiplier", 1.0))
            remaining = float(data.get("remaining_seconds", 0.0))
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed market bonus payload: %r", data)
            return None
        return (multiplier, remaining)
