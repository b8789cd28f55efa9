"""HTTP tests against the FastAPI app with the database and FX client overridden."""

import uuid
from decimal import Decimal

import httpx
import pytest
from httpx import ASGITransport

from agency_console.api.deps import get_fx_client
from agency_console.database import get_db
from agency_console.main import app
from agency_console.models import AffiliateModelDeal, CreatorModel, MonthlyMemberBasis, TeamMember


MONTH = "2026-03"


@pytest.fixture
def fx_clients_opened():
    return []


@pytest.fixture
async def client(session_factory, fx_clients_opened):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_fx_client():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"rates": {"EUR": 0.9}}))
        async with httpx.AsyncClient(transport=transport) as fx_client:
            fx_clients_opened.append(fx_client)
            yield fx_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_fx_client] = override_get_fx_client
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
async def seeded(session_factory):
    async with session_factory() as session:
        chatter = TeamMember(name="Chloe", role="chatter", department="chatting",
                             payout_type="percentage", payout_percentage=Decimal("10"))
        session.add(chatter)
        await session.flush()
        session.add(MonthlyMemberBasis(month_id=MONTH, team_member_id=chatter.id, basis_type="sales",
                                       gross_usd=Decimal("5000"), payout_pct=Decimal("10")))
        await session.commit()
        return chatter


async def _save_preview(client) -> str:
    preview = (await client.get("/api/v1/payout-runs/preview", params={"month_id": MONTH, "fx_rate": "0.92"})).json()
    response = await client.post(
        "/api/v1/payout-runs/save-computed",
        json={"month_id": MONTH, "lines": preview["lines"]},
    )
    assert response.status_code == 201
    return response.json()["run_id"]


class TestPreview:
    async def test_preview_lines(self, client, seeded) -> None:
        response = await client.get("/api/v1/payout-runs/preview", params={"month_id": MONTH, "fx_rate": "0.92"})
        assert response.status_code == 200
        body = response.json()
        assert len(body["lines"]) == 1
        assert Decimal(str(body["lines"][0]["payout_amount"])) == Decimal("500.00")
        assert body["totals"]["by_category"]["chatter"]["lines"] == 1

    async def test_preview_fetches_rate_when_omitted(self, client, seeded) -> None:
        response = await client.get("/api/v1/payout-runs/preview", params={"month_id": MONTH, "debug": "true"})
        body = response.json()
        assert Decimal(str(body["fx_rate"])) == Decimal("0.9")
        assert body["debug"]["fx_source"] == "api"

    async def test_bad_month(self, client) -> None:
        response = await client.get("/api/v1/payout-runs/preview", params={"month_id": "2026-13"})
        assert response.status_code == 422

    async def test_config_error_is_422_with_issues(self, client, session_factory) -> None:
        async with session_factory() as session:
            session.add(TeamMember(name="Mara", role="chatting_manager", department="chatting",
                                   chatting_percentage=Decimal("5"),
                                   chatting_percentage_messages_tips=Decimal("3")))
            await session.commit()

        response = await client.get("/api/v1/payout-runs/preview", params={"month_id": MONTH, "fx_rate": "0.92"})
        assert response.status_code == 422
        issues = response.json()["issues"]
        assert issues[0]["payee_name"] == "Mara"
        assert issues[0]["field"] == "chatting_msgs_tips"

    async def test_stored_sales_pct_out_of_range_is_422(self, client, session_factory) -> None:
        async with session_factory() as session:
            chatter = TeamMember(name="Chloe", role="chatter", department="chatting")
            session.add(chatter)
            await session.flush()
            session.add(MonthlyMemberBasis(month_id=MONTH, team_member_id=chatter.id, basis_type="sales",
                                           gross_usd=Decimal("1000"), payout_pct=Decimal("150")))
            await session.commit()

        response = await client.get("/api/v1/payout-runs/preview", params={"month_id": MONTH, "fx_rate": "0.92"})
        assert response.status_code == 422
        assert [(i["payee_name"], i["field"]) for i in response.json()["issues"]] == [("Chloe", "payout_pct")]

    async def test_stored_deal_percentage_out_of_range_is_422(self, client, session_factory) -> None:
        async with session_factory() as session:
            affiliate = TeamMember(name="Alex", role="affiliator", department="affiliate")
            model = CreatorModel(name="Nova")
            session.add_all([affiliate, model])
            await session.flush()
            session.add(AffiliateModelDeal(affiliator_id=affiliate.id, model_id=model.id,
                                           percentage=Decimal("150")))
            await session.commit()

        response = await client.get("/api/v1/payout-runs/preview", params={"month_id": MONTH, "fx_rate": "0.92"})
        assert response.status_code == 422
        assert [(i["payee_name"], i["field"]) for i in response.json()["issues"]] == [("Alex", "percentage")]


class TestRuns:
    async def test_save_list_and_get(self, client, seeded) -> None:
        run_id = await _save_preview(client)

        listing = (await client.get("/api/v1/payout-runs", params={"month_id": MONTH})).json()
        assert listing["total"] == 1
        assert listing["items"][0]["id"] == run_id

        run = (await client.get(f"/api/v1/payout-runs/{run_id}")).json()
        assert run["status"] == "draft"
        assert run["lines"][0]["payee_name"] == "Chloe"

    async def test_lifecycle_conflicts(self, client, seeded) -> None:
        run_id = await _save_preview(client)

        response = await client.patch(f"/api/v1/payout-runs/{run_id}", json={"status": "locked"})
        assert response.status_code == 200
        assert response.json()["status"] == "locked"

        response = await client.patch(f"/api/v1/payout-runs/{run_id}", json={"status": "draft"})
        assert response.status_code == 409

        response = await client.delete(f"/api/v1/payout-runs/{run_id}")
        assert response.status_code == 409

    async def test_delete_draft(self, client, seeded) -> None:
        run_id = await _save_preview(client)
        response = await client.delete(f"/api/v1/payout-runs/{run_id}")
        assert response.json() == {"ok": True}
        assert (await client.get(f"/api/v1/payout-runs/{run_id}")).status_code == 404

    async def test_line_paid_toggle(self, client, seeded) -> None:
        run_id = await _save_preview(client)
        line_id = (await client.get(f"/api/v1/payout-runs/{run_id}")).json()["lines"][0]["id"]

        body = (await client.patch(f"/api/v1/payout-lines/{line_id}", json={"paid": True})).json()
        assert body["paid_status"] == "paid"
        assert body["paid_at"] is not None

    async def test_only_preview_opens_fx_client(self, client, seeded, fx_clients_opened) -> None:
        run_id = await _save_preview(client)
        assert len(fx_clients_opened) == 1

        line_id = (await client.get(f"/api/v1/payout-runs/{run_id}")).json()["lines"][0]["id"]
        await client.get("/api/v1/payout-runs")
        await client.patch(f"/api/v1/payout-lines/{line_id}", json={"paid": True})
        await client.patch(f"/api/v1/payout-runs/{run_id}", json={"notes": "checked"})
        await client.delete(f"/api/v1/payout-runs/{run_id}")

        assert len(fx_clients_opened) == 1

    async def test_audit_log_route(self, client, seeded) -> None:
        run_id = await _save_preview(client)
        await client.patch(f"/api/v1/payout-runs/{run_id}", json={"status": "locked", "notes": "ok"})

        body = (await client.get(f"/api/v1/payout-runs/{run_id}/audit-log")).json()
        assert body["total"] == 3
        assert [item["action"] for item in body["items"]] == ["CREATE", "STATUS_CHANGE", "UPDATE"]
        assert body["items"][1]["new_values"] == {"status": "locked"}

    async def test_unknown_line_404(self, client) -> None:
        response = await client.patch(f"/api/v1/payout-lines/{uuid.uuid4()}", json={"paid": True})
        assert response.status_code == 404


class TestAgencyRevenueAndFx:
    async def test_put_then_get(self, client) -> None:
        response = await client.put(f"/api/v1/agency-revenue/{MONTH}", json={"chatting_net_eur": "8000"})
        assert response.status_code == 200
        await client.put(f"/api/v1/agency-revenue/{MONTH}", json={"gunzo_net_eur": "1000"})

        body = (await client.get(f"/api/v1/agency-revenue/{MONTH}")).json()
        assert Decimal(str(body["chatting_net_eur"])) == Decimal("8000")
        assert Decimal(str(body["gunzo_net_eur"])) == Decimal("1000")

    async def test_missing_month_404(self, client) -> None:
        assert (await client.get("/api/v1/agency-revenue/2020-01")).status_code == 404

    async def test_fx_endpoint(self, client) -> None:
        body = (await client.get("/api/v1/fx/usd-eur")).json()
        assert body["source"] == "api"
        assert Decimal(str(body["rate"])) == Decimal("0.9")
