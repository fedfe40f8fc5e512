"""End-to-end API tests: group lifecycle, pledge gate, leaderboard, rollover."""

from __future__ import annotations

import re

import pytest
from httpx import AsyncClient

from lilo.weeks.week_utils import canonical_today

CODE_RE = re.compile(r"^[A-Z0-9]{1,4}-[A-Z0-9]{4}$")


async def create_group(client: AsyncClient, headers: dict, name: str = "Sleepy Heads") -> dict:
    resp = await client.post("/api/v1/groups", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def current_week(client: AsyncClient, headers: dict, group_id: str) -> dict:
    resp = await client.get(f"/api/v1/groups/{group_id}/weeks/current", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestGroupsApi:
    @pytest.mark.asyncio
    async def test_create_and_fetch_my_group(self, client: AsyncClient, headers_for):
        ana = headers_for("ana")
        group = await create_group(client, ana)
        assert CODE_RE.match(group["code"])
        assert group["code"].startswith("SLEE-")
        assert group["owner_id"] == "ana"

        resp = await client.get("/api/v1/groups/me", headers=ana)
        assert resp.status_code == 200
        assert resp.json()["id"] == group["id"]

        week = await current_week(client, ana, group["id"])
        assert week["week_number"] == 1
        assert week["is_active"] is True

    @pytest.mark.asyncio
    async def test_no_group_is_null(self, client: AsyncClient, headers_for):
        resp = await client.get("/api/v1/groups/me", headers=headers_for("ben"))
        assert resp.status_code == 200
        assert resp.json() is None

    @pytest.mark.asyncio
    async def test_join_lowercase_code_and_list_members(self, client: AsyncClient, headers_for):
        ana, ben = headers_for("ana"), headers_for("ben")
        group = await create_group(client, ana)

        resp = await client.post("/api/v1/groups/join", json={"code": group["code"].lower()}, headers=ben)
        assert resp.status_code == 200
        assert resp.json()["id"] == group["id"]

        resp = await client.get(f"/api/v1/groups/{group['id']}/members", headers=ben)
        members = resp.json()["members"]
        assert [m["user"]["id"] for m in members] == ["ana", "ben"]
        assert [m["is_owner"] for m in members] == [True, False]

    @pytest.mark.asyncio
    async def test_join_errors(self, client: AsyncClient, headers_for):
        ana, ben = headers_for("ana"), headers_for("ben")
        group = await create_group(client, ana)

        resp = await client.post("/api/v1/groups/join", json={"code": "NOPE-0000"}, headers=ben)
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Invalid group code", "code": "NOT_FOUND"}

        resp = await client.post("/api/v1/groups/join", json={"code": group["code"]}, headers=ana)
        assert resp.status_code == 409
        assert resp.json()["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, client: AsyncClient, headers_for):
        resp = await client.post("/api/v1/groups", json={"name": "   "}, headers=headers_for("ana"))
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_empty_name_rejected_by_schema(self, client: AsyncClient, headers_for):
        resp = await client.post("/api/v1/groups", json={"name": ""}, headers=headers_for("ana"))
        assert resp.status_code == 422
        assert resp.json()["errors"][0]["loc"] == ["body", "name"]


class TestSleepFlow:
    @pytest.mark.asyncio
    async def test_pledge_gate_then_leaderboard(self, client: AsyncClient, headers_for):
        ana = headers_for("ana")
        group = await create_group(client, ana)
        week = await current_week(client, ana, group["id"])
        today = canonical_today().isoformat()
        log_body = {"wake_date": today, "hours": 7.5, "week_id": int(week["id"])}

        resp = await client.post("/api/v1/sleep", json=log_body, headers=ana)
        assert resp.status_code == 428
        assert resp.json()["code"] == "PLEDGE_REQUIRED"

        resp = await client.get(f"/api/v1/weeks/{week['id']}/entries/me", headers=ana)
        assert resp.json()["entries"] == []

        resp = await client.get(f"/api/v1/weeks/{week['id']}/pledge", headers=ana)
        assert resp.json() is None

        resp = await client.post(f"/api/v1/weeks/{week['id']}/pledge", json={"amount": 15}, headers=ana)
        assert resp.status_code == 201
        assert resp.json()["amount"] == 15.0

        resp = await client.post("/api/v1/sleep", json=log_body, headers=ana)
        assert resp.status_code == 201
        assert resp.json()["hours"] == 7.5

        resp = await client.get(f"/api/v1/groups/{group['id']}/weeks/{week['id']}/leaderboard", headers=ana)
        assert resp.status_code == 200
        rows = resp.json()["entries"]
        assert len(rows) == 1
        row = rows[0]
        assert row["user_id"] == "ana"
        assert row["total_hours"] == 7.5
        assert row["tax_pledged"] == 15.0
        assert row["rank"] == 1
        assert row["entries_count"] == 1

    @pytest.mark.asyncio
    async def test_relog_overwrites(self, client: AsyncClient, headers_for):
        ana = headers_for("ana")
        group = await create_group(client, ana)
        week = await current_week(client, ana, group["id"])
        await client.post(f"/api/v1/weeks/{week['id']}/pledge", json={"amount": 0}, headers=ana)

        today = canonical_today().isoformat()
        for hours in (5, 8):
            resp = await client.post(
                "/api/v1/sleep",
                json={"wake_date": today, "hours": hours, "week_id": int(week["id"])},
                headers=ana,
            )
            assert resp.status_code == 201

        resp = await client.get(f"/api/v1/weeks/{week['id']}/users/ana/stats", headers=ana)
        stats = resp.json()
        assert [e["hours"] for e in stats["entries"]] == [8.0]
        assert stats["total_hours"] == 8.0
        assert stats["streak"] == 1

    @pytest.mark.asyncio
    async def test_pledge_bounds_and_duplicates(self, client: AsyncClient, headers_for):
        ana = headers_for("ana")
        group = await create_group(client, ana)
        week = await current_week(client, ana, group["id"])
        url = f"/api/v1/weeks/{week['id']}/pledge"

        for amount in (-1, 50.5):
            resp = await client.post(url, json={"amount": amount}, headers=ana)
            assert resp.status_code == 422
            assert resp.json()["errors"][0]["loc"] == ["body", "amount"]

        assert (await client.post(url, json={"amount": 50}, headers=ana)).status_code == 201
        resp = await client.post(url, json={"amount": 10}, headers=ana)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "You have already pledged for this week"

    @pytest.mark.asyncio
    async def test_future_night_rejected(self, client: AsyncClient, headers_for):
        resp = await client.post(
            "/api/v1/sleep",
            json={"wake_date": "2999-01-01", "hours": 8},
            headers=headers_for("ana"),
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_hours_out_of_range_rejected_by_schema(self, client: AsyncClient, headers_for):
        today = canonical_today().isoformat()
        for hours in (-0.5, 24.5):
            resp = await client.post(
                "/api/v1/sleep",
                json={"wake_date": today, "hours": hours},
                headers=headers_for("ana"),
            )
            assert resp.status_code == 422
            assert resp.json()["errors"][0]["loc"] == ["body", "hours"]


class TestEndWeekApi:
    @pytest.mark.asyncio
    async def test_owner_only_and_single_rollover(self, client: AsyncClient, headers_for):
        ana, ben = headers_for("ana"), headers_for("ben")
        group = await create_group(client, ana)
        await client.post("/api/v1/groups/join", json={"code": group["code"]}, headers=ben)
        week = await current_week(client, ana, group["id"])
        end_url = f"/api/v1/groups/{group['id']}/weeks/{week['id']}/end"

        resp = await client.post(end_url, headers=ben)
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Only the owner can end the week", "code": "UNAUTHORIZED"}
        assert (await current_week(client, ana, group["id"]))["id"] == week["id"]

        resp = await client.post(end_url, headers=ana)
        assert resp.status_code == 200
        new_week = resp.json()
        assert new_week["week_number"] == 2
        assert new_week["is_active"] is True

        resp = await client.post(end_url, headers=ana)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "This week has already ended"

        current = await current_week(client, ana, group["id"])
        assert current["id"] == new_week["id"]

    @pytest.mark.asyncio
    async def test_logging_against_closed_week_rejected(self, client: AsyncClient, headers_for):
        ana = headers_for("ana")
        group = await create_group(client, ana)
        week = await current_week(client, ana, group["id"])
        await client.post(f"/api/v1/weeks/{week['id']}/pledge", json={"amount": 5}, headers=ana)
        await client.post(f"/api/v1/groups/{group['id']}/weeks/{week['id']}/end", headers=ana)

        resp = await client.post(
            "/api/v1/sleep",
            json={"wake_date": canonical_today().isoformat(), "hours": 8, "week_id": int(week["id"])},
            headers=ana,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "This week has already ended"

    @pytest.mark.asyncio
    async def test_unknown_week_is_not_found(self, client: AsyncClient, headers_for):
        ana = headers_for("ana")
        group = await create_group(client, ana)
        resp = await client.post(f"/api/v1/groups/{group['id']}/weeks/9999/end", headers=ana)
        assert resp.status_code == 404
        assert resp.json()["code"] == "NOT_FOUND"
