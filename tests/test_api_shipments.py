"""Tests for shipment, supplier, category, dashboard and insight endpoints."""
from datetime import date, timedelta
from decimal import Decimal
import uuid

import pytest
from freezegun import freeze_time
from pydantic import ValidationError
from sqlalchemy import func, select

from shiptrack.main import app
from shiptrack.models import ShipmentItem
from shiptrack.schemas.shipment import ShipmentCreate

API = "/api/v1"


def _shipment(products, **overrides):
    body = {
        "fba_shipment_id": "FBA15ABCDE",
        "shipment_date": "2026-01-15",
        "carrier_company": "UPS",
        "total_shipping_cost": "120.00",
        "items": [
            {"product_id": str(p.id), "quantity": q, "unit_shipping_cost": "2.50"}
            for p, q in zip(products, (10, 4, 6))
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture
def create_shipment(client, auth_headers, sample_products):
    async def _create(**overrides):
        response = await client.post(f"{API}/shipments", headers=auth_headers,
                                     json=_shipment(sample_products, **overrides))
        assert response.status_code == 201, response.text
        return response.json()
    return _create


class TestShipmentDate:

    @freeze_time("2026-03-01")
    def test_future_date_rejected(self):
        with pytest.raises(ValidationError, match="future"):
            ShipmentCreate(**_shipment([], shipment_date="2026-03-02",
                                       items=[{"product_id": str(uuid.uuid4()), "quantity": 1}]))

    @freeze_time("2026-03-01")
    def test_today_accepted(self):
        shipment = ShipmentCreate(**_shipment([], shipment_date="2026-03-01",
                                              items=[{"product_id": str(uuid.uuid4()), "quantity": 1}]))
        assert shipment.shipment_date == date(2026, 3, 1)


class TestShipmentApi:

    async def test_create_with_items(self, create_shipment):
        data = await create_shipment()
        assert data["status"] == "pending"
        assert data["display_status"] == "draft"
        assert len(data["items"]) == 3
        assert {i["product"]["asin"] for i in data["items"]} == {"B000000001", "B000000002", "B000000003"}

    async def test_future_date_is_422(self, client, auth_headers, sample_products):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        response = await client.post(f"{API}/shipments", headers=auth_headers,
                                     json=_shipment(sample_products, shipment_date=tomorrow))
        assert response.status_code == 422

    async def test_zero_quantity_is_422(self, client, auth_headers, sample_products):
        body = _shipment(sample_products)
        body["items"][0]["quantity"] = 0
        response = await client.post(f"{API}/shipments", headers=auth_headers, json=body)
        assert response.status_code == 422

    async def test_empty_items_is_422(self, client, auth_headers, sample_products):
        response = await client.post(f"{API}/shipments", headers=auth_headers,
                                     json=_shipment(sample_products, items=[]))
        assert response.status_code == 422

    async def test_foreign_product_is_404(self, client, other_headers, sample_products, other_user):
        response = await client.post(f"{API}/shipments", headers=other_headers, json=_shipment(sample_products))
        assert response.status_code == 404

    async def test_delivered_displays_completed(self, client, auth_headers, create_shipment):
        data = await create_shipment()
        response = await client.put(f"{API}/shipments/{data['id']}", headers=auth_headers,
                                    json={"status": "delivered"})
        assert response.status_code == 200
        assert response.json()["display_status"] == "completed"

    async def test_invalid_status_is_422(self, client, auth_headers, create_shipment):
        data = await create_shipment()
        response = await client.put(f"{API}/shipments/{data['id']}", headers=auth_headers,
                                    json={"status": "lost"})
        assert response.status_code == 422

    async def test_delete_removes_items(self, client, auth_headers, create_shipment, test_db):
        data = await create_shipment()
        response = await client.delete(f"{API}/shipments/{data['id']}", headers=auth_headers)
        assert response.status_code == 204
        count = (await test_db.execute(select(func.count()).select_from(ShipmentItem))).scalar_one()
        assert count == 0
        response = await client.get(f"{API}/shipments/{data['id']}", headers=auth_headers)
        assert response.status_code == 404

    async def test_list_filters(self, client, auth_headers, create_shipment):
        await create_shipment()
        await create_shipment(fba_shipment_id="FBA15ZZZZZ", carrier_company="Aras Kargo",
                              shipment_date="2026-02-01", status="in_transit")

        response = await client.get(f"{API}/shipments", headers=auth_headers)
        assert [s["fba_shipment_id"] for s in response.json()["items"]] == ["FBA15ZZZZZ", "FBA15ABCDE"]

        response = await client.get(f"{API}/shipments", headers=auth_headers, params={"search": "aras"})
        assert response.json()["total"] == 1

        response = await client.get(f"{API}/shipments", headers=auth_headers, params={"status": "pending"})
        assert [s["carrier_company"] for s in response.json()["items"]] == ["UPS"]

        response = await client.get(f"{API}/shipments", headers=auth_headers,
                                    params={"date_from": "2026-01-20", "date_to": "2026-02-28"})
        assert response.json()["total"] == 1

    async def test_search_wildcards_are_literal(self, client, auth_headers, create_shipment):
        await create_shipment()
        await create_shipment(fba_shipment_id="FBA15_100%", carrier_company="Aras Kargo")

        response = await client.get(f"{API}/shipments", headers=auth_headers, params={"search": "%%"})
        assert response.json()["total"] == 0

        response = await client.get(f"{API}/shipments", headers=auth_headers, params={"search": "5_1"})
        assert [s["fba_shipment_id"] for s in response.json()["items"]] == ["FBA15_100%"]

        response = await client.get(f"{API}/shipments", headers=auth_headers, params={"search": "a_"})
        assert response.json()["total"] == 0

    async def test_update_rejects_null_required_fields(self, client, auth_headers, create_shipment):
        data = await create_shipment()
        response = await client.put(f"{API}/shipments/{data['id']}", headers=auth_headers,
                                    json={"carrier_company": None})
        assert response.status_code == 422

        response = await client.put(f"{API}/shipments/{data['id']}", headers=auth_headers,
                                    json={"fba_shipment_id": None, "notes": None})
        assert response.status_code == 422

        response = await client.put(f"{API}/shipments/{data['id']}", headers=auth_headers,
                                    json={"notes": None})
        assert response.status_code == 200

    async def test_inverted_date_range_is_400(self, client, auth_headers):
        response = await client.get(f"{API}/shipments", headers=auth_headers,
                                    params={"date_from": "2026-02-01", "date_to": "2026-01-01"})
        assert response.status_code == 400

    async def test_list_is_owner_scoped(self, client, other_headers, create_shipment):
        await create_shipment()
        response = await client.get(f"{API}/shipments", headers=other_headers)
        assert response.json()["total"] == 0


class TestSuppliersAndCategories:

    async def test_supplier_crud(self, client, auth_headers):
        response = await client.post(f"{API}/suppliers", headers=auth_headers,
                                     json={"name": "Ege Tekstil", "country": "TR"})
        assert response.status_code == 201
        supplier_id = response.json()["id"]

        response = await client.put(f"{API}/suppliers/{supplier_id}", headers=auth_headers,
                                    json={"email": "satis@egetekstil.com"})
        assert response.status_code == 200
        assert response.json()["email"] == "satis@egetekstil.com"

        response = await client.get(f"{API}/suppliers", headers=auth_headers)
        assert [s["name"] for s in response.json()] == ["Ege Tekstil"]

        response = await client.delete(f"{API}/suppliers/{supplier_id}", headers=auth_headers)
        assert response.status_code == 204

    async def test_null_name_rejected(self, client, auth_headers, supplier, category):
        response = await client.put(f"{API}/suppliers/{supplier.id}", headers=auth_headers, json={"name": None})
        assert response.status_code == 422
        response = await client.put(f"{API}/categories/{category.id}", headers=auth_headers, json={"name": None})
        assert response.status_code == 422
        response = await client.put(f"{API}/categories/{category.id}", headers=auth_headers, json={"icon": None})
        assert response.status_code == 200

    async def test_supplier_of_other_user(self, client, other_headers, supplier):
        response = await client.delete(f"{API}/suppliers/{supplier.id}", headers=other_headers)
        assert response.status_code == 404

    async def test_category_color_validated(self, client, auth_headers):
        response = await client.post(f"{API}/categories", headers=auth_headers,
                                     json={"name": "Bahçe", "color": "green"})
        assert response.status_code == 422

    async def test_category_create(self, client, auth_headers):
        response = await client.post(f"{API}/categories", headers=auth_headers,
                                     json={"name": "Bahçe", "color": "#22AA44", "icon": "leaf"})
        assert response.status_code == 201
        assert response.json()["color"] == "#22AA44"


class TestDashboard:

    async def test_stats(self, client, auth_headers, create_shipment):
        await create_shipment()
        response = await client.get(f"{API}/dashboard/stats", headers=auth_headers)
        data = response.json()
        assert data["total_products"] == 3
        assert data["total_shipments"] == 1
        assert data["total_shipped_quantity"] == 20
        assert Decimal(data["total_shipping_cost"]) == Decimal("120.00")

    async def test_stats_empty_account(self, client, other_headers):
        response = await client.get(f"{API}/dashboard/stats", headers=other_headers)
        data = response.json()
        assert data["total_products"] == 0
        assert data["total_shipped_quantity"] == 0


class TestShipmentReport:

    async def _three_shipments(self, create_shipment):
        await create_shipment()
        await create_shipment(fba_shipment_id="FBA15MARCH", carrier_company="Aras Kargo",
                              shipment_date="2026-03-10", total_shipping_cost="30.00", status="delivered")
        await create_shipment(fba_shipment_id="FBA15MARUP", shipment_date="2026-03-20",
                              total_shipping_cost="60.00")

    async def test_report_over_range(self, client, auth_headers, create_shipment):
        await self._three_shipments(create_shipment)
        response = await client.get(f"{API}/dashboard/reports", headers=auth_headers,
                                    params={"date_from": "2026-01-01", "date_to": "2026-04-30"})
        assert response.status_code == 200
        data = response.json()

        assert data["summary"]["total_shipments"] == 3
        assert Decimal(data["summary"]["total_shipping_cost"]) == Decimal("210.00")
        assert Decimal(data["summary"]["average_shipping_cost"]) == Decimal("70.00")
        assert data["summary"]["active_carriers"] == 2

        monthly = {m["month"]: m for m in data["monthly"]}
        assert list(monthly) == ["2026-01", "2026-02", "2026-03", "2026-04"]
        assert monthly["2026-02"]["shipments"] == 0
        assert monthly["2026-02"]["average_cost"] is None
        assert monthly["2026-03"]["shipments"] == 2
        assert Decimal(monthly["2026-03"]["shipping_cost"]) == Decimal("90.00")
        assert Decimal(monthly["2026-03"]["average_cost"]) == Decimal("45.00")

        ups, aras = data["carriers"]
        assert (ups["carrier"], ups["shipments"]) == ("UPS", 2)
        assert Decimal(ups["percentage"]) == Decimal("66.67")
        assert Decimal(ups["average_cost"]) == Decimal("90.00")
        assert Decimal(aras["total_cost"]) == Decimal("30.00")

        assert data["statuses"] == [
            {"status": "completed", "shipments": 1},
            {"status": "draft", "shipments": 2},
        ]

    async def test_date_range_filters_shipments(self, client, auth_headers, create_shipment):
        await self._three_shipments(create_shipment)
        response = await client.get(f"{API}/dashboard/reports", headers=auth_headers,
                                    params={"date_from": "2026-02-01"})
        data = response.json()
        assert data["summary"]["total_shipments"] == 2
        assert [m["month"] for m in data["monthly"]] == ["2026-02", "2026-03"]

    async def test_report_is_owner_scoped(self, client, other_headers, create_shipment):
        await create_shipment()
        response = await client.get(f"{API}/dashboard/reports", headers=other_headers)
        data = response.json()
        assert data["summary"]["total_shipments"] == 0
        assert data["summary"]["average_shipping_cost"] is None
        assert data["monthly"] == []
        assert data["carriers"] == []

    async def test_inverted_range_is_400(self, client, auth_headers):
        response = await client.get(f"{API}/dashboard/reports", headers=auth_headers,
                                    params={"date_from": "2026-05-01", "date_to": "2026-04-01"})
        assert response.status_code == 400


class EchoProvider:
    async def generate(self, topic, payload):
        return f"{topic}: {payload['summary']['total_products']} products"


class BrokenProvider:
    async def generate(self, topic, payload):
        raise ConnectionError("provider offline")


class TestInsightsApi:

    async def test_without_provider_is_503(self, client, auth_headers, sample_products):
        response = await client.post(f"{API}/insights/products", headers=auth_headers)
        assert response.status_code == 503

    async def test_with_provider(self, client, auth_headers, sample_products, monkeypatch):
        monkeypatch.setattr(app.state, "insight_provider", EchoProvider())
        response = await client.post(f"{API}/insights/products", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["content"] == "product_portfolio: 3 products"

    async def test_provider_failure_is_503(self, client, auth_headers, sample_products, monkeypatch):
        monkeypatch.setattr(app.state, "insight_provider", BrokenProvider())
        response = await client.post(f"{API}/insights/products", headers=auth_headers)
        assert response.status_code == 503
        assert response.json()["details"]["original_error"] == "provider offline"


class TestHealth:

    async def test_root(self, client):
        response = await client.get("/")
        assert response.json()["status"] == "running"

    async def test_request_id_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"
        assert response.headers["X-Process-Time"].endswith("ms")
