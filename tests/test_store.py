"""Tests for coralfeast.gateway.store against a mocked HTTP backend."""

from __future__ import annotations

import json

import httpx
import pytest

from coralfeast.gateway.store import HttpPondStore, PondStoreError, SlotAction
from coralfeast.pond.slot import HazardType, Stage

POND_PAYLOAD = {
    "id": 3,
    "current_day": 4,
    "slots": [
        {
            "id": 11,
            "position": 0,
            "status": "juvenile",
            "health": 80,
            "feeding_count": 1,
            "feeding_limit": 4,
            "is_hungry": True,
            "has_ph_issue": True,
            "stage_progress_seconds": 12,
            "fish": {"slug": "koi", "sell_price": 75},
        },
        {"id": 12, "position": 1, "status": "egg"},
    ],
}


def _store(handler, catalog=None) -> HttpPondStore:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="http://store.test",
    )
    return HttpPondStore("http://store.test", "u1", catalog=catalog, client=client)


class TestFetchPond:
    """Tests for reading the player's pond."""

    @pytest.mark.asyncio
    async def test_parses_first_pond(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [POND_PAYLOAD]})

        async with _store(handler) as store:
            snapshot = await store.fetch_pond("u1")

        assert seen[0].url.path == "/api/v1/ponds"
        assert seen[0].url.params["user_id"] == "u1"
        assert snapshot.pond_id == 3
        assert snapshot.current_day == 4
        koi, egg = snapshot.slots
        assert koi.remote_id == 11
        assert koi.stage == Stage.ADULT
        assert koi.health == 80.0
        assert koi.max_feed_count == 4
        assert koi.hungry
        assert koi.ph
        assert koi.harvest_value == 75
        assert koi.creature == "koi"
        assert egg.stage == Stage.EMPTY

    @pytest.mark.asyncio
    async def test_no_pond(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": []})

        async with _store(handler) as store:
            assert await store.fetch_pond("u1") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "database unavailable"})

        async with _store(handler) as store:
            with pytest.raises(PondStoreError, match="database unavailable") as info:
                await store.fetch_pond("u1")
        assert info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _store(handler) as store:
            with pytest.raises(PondStoreError) as info:
                await store.fetch_pond("u1")
        assert info.value.status_code is None


class TestSlotWrites:
    """Tests for slot actions and hazard endpoints."""

    @pytest.mark.asyncio
    async def test_post_slot_action(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"data": {"id": 11, "status": "egg", "fish": {"slug": "koi"}}},
            )

        async with _store(handler) as store:
            snap = await store.post_slot_action(3, 11, SlotAction.STOCK, {"creature": "koi"})

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/v1/ponds/3/slots/11/stock"
        assert json.loads(seen[0].content) == {"user_id": "u1", "creature": "koi"}
        assert snap.stage == Stage.EGG

    @pytest.mark.asyncio
    async def test_issue_paths(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"data": None})

        async with _store(handler) as store:
            assert await store.raise_issue(3, 11, HazardType.WATER_QUALITY) is None
            assert await store.resolve_issue(3, 11, HazardType.OXYGEN) is None

        assert paths == [
            "/api/v1/ponds/3/slots/11/issues/water-quality",
            "/api/v1/ponds/3/slots/11/issues/oxygen/resolve",
        ]

    @pytest.mark.asyncio
    async def test_rejected_action_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "Slot is not harvestable"})

        async with _store(handler) as store:
            with pytest.raises(PondStoreError) as info:
                await store.post_slot_action(3, 11, SlotAction.HARVEST)
        assert info.value.status_code == 409


class TestMarketBonus:
    """Tests for the double-offer listing."""

    @pytest.mark.asyncio
    async def test_active_bonus(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/market/listings/double-offer"
            return httpx.Response(
                200,
                json={"data": {"active": True, "multiplier": 2, "remaining_seconds": 45}},
            )

        async with _store(handler) as store:
            assert await store.fetch_market_bonus() == (2.0, 45.0)

    @pytest.mark.asyncio
    async def test_inactive_bonus(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"active": False}})

        async with _store(handler) as store:
            assert await store.fetch_market_bonus() == (1.0, 0.0)
