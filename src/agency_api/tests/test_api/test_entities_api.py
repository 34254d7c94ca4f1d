import asyncio

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event

from agency_api.db.session import build_engine, create_tables
from agency_api.main import create_app


class TestAgentsEndpoints:

    async def test_create_then_list(self, client):
        """
        Behavior:
            - POST /agents with COMMISSION as a string stores one row.
            - GET /agents returns it with COMMISSION as a JSON number.

        Importance:
            - The reference round trip of the API contract.
        """
        resp = await client.post("/agents", json={"AGENT_CODE": "A001", "AGENT_NAME": "Alice", "COMMISSION": "0.15"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Agent added"
        assert body["result"]["affectedRows"] == 1
        assert "insertId" in body["result"]

        listing = await client.get("/agents")
        assert listing.status_code == 200
        assert listing.json() == [{
            "AGENT_CODE": "A001",
            "AGENT_NAME": "Alice",
            "WORKING_AREA": None,
            "COMMISSION": 0.15,
            "PHONE_NO": None,
            "COUNTRY": None,
        }]

    async def test_patch_updates_only_given_field(self, client, create_agent):
        await create_agent(WORKING_AREA="London")

        resp = await client.patch("/agents/A001", json={"COUNTRY": "USA"})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Agent updated", "result": {"affectedRows": 1}}
        [agent] = (await client.get("/agents")).json()
        assert agent["COUNTRY"] == "USA"
        assert agent["WORKING_AREA"] == "London"
        assert agent["AGENT_NAME"] == "Alice"

    async def test_empty_patch_succeeds(self, client, create_agent):
        await create_agent()

        resp = await client.patch("/agents/A001", json={})

        assert resp.status_code == 200
        assert resp.json()["result"] == {"affectedRows": 1}

    async def test_put_replaces_record(self, client, create_agent):
        await create_agent()
        body = {"AGENT_NAME": "Alicia", "WORKING_AREA": "Paris", "COMMISSION": 0.2, "PHONE_NO": None, "COUNTRY": "FR"}

        resp = await client.put("/agents/A001", json=body)

        assert resp.status_code == 200
        assert resp.json()["message"] == "Agent fully updated"
        [agent] = (await client.get("/agents")).json()
        assert agent == {"AGENT_CODE": "A001", **body}

    async def test_put_with_missing_fields_is_rejected(self, client, create_agent):
        await create_agent()

        resp = await client.put("/agents/A001", json={"AGENT_NAME": "Alicia"})

        assert resp.status_code == 400
        assert resp.json()["fields"] == ["WORKING_AREA", "COMMISSION", "PHONE_NO", "COUNTRY"]

    async def test_delete_missing_key_succeeds_with_zero_rows(self, client):
        resp = await client.delete("/agents/ZZZ")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Agent deleted", "result": {"affectedRows": 0}}

    async def test_delete_existing(self, client, create_agent):
        await create_agent()

        resp = await client.delete("/agents/A001")

        assert resp.json()["result"] == {"affectedRows": 1}
        assert (await client.get("/agents")).json() == []


class TestValidationFailures:

    async def test_non_numeric_order_amount(self, client):
        resp = await client.post("/orders", json={"ORD_AMOUNT": "abc"})

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["code"] == "validation_failed"
        errors = {e["field"]: e["reason"] for e in body["errors"]}
        assert errors["ORD_AMOUNT"] == "ORD_AMOUNT must be a number"
        assert errors["ORD_NUM"] == "ORD_NUM is required"
        assert (await client.get("/orders")).json() == []

    async def test_missing_body_lists_required_fields(self, client):
        resp = await client.post("/company")

        assert resp.status_code == 400
        assert resp.json()["fields"] == ["COMPANY_ID", "COMPANY_NAME"]

    async def test_malformed_json_is_a_400(self, client):
        resp = await client.post("/agents", content=b'{"AGENT_CODE": ', headers={"Content-Type": "application/json"})

        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_failed"
        assert resp.json()["errors"][0]["location"] == "body"

    async def test_array_body_is_a_400(self, client):
        resp = await client.post("/agents", json=[{"AGENT_CODE": "A001"}])

        assert resp.status_code == 400
        assert resp.json()["errors"] == [
            {"field": "body", "reason": "Request body must be a JSON object", "location": "body"},
        ]

    async def test_customer_grade_must_be_integer(self, client):
        resp = await client.post("/customer", json={"CUST_CODE": "C00001", "CUST_NAME": "Micheal", "GRADE": "x"})

        assert resp.status_code == 400
        assert resp.json()["fields"] == ["GRADE"]

    async def test_patch_cannot_change_primary_key(self, client, create_agent):
        await create_agent()

        resp = await client.patch("/agents/A001", json={"AGENT_CODE": "A999"})

        assert resp.status_code == 400
        assert resp.json()["fields"] == ["AGENT_CODE"]


class TestPersistenceFailures:

    async def test_duplicate_key_is_a_500_with_store_message(self, client, engine):
        """
        Behavior:
            - Re-posting the same key fails with 500 and the store's message.
            - No connection stays checked out afterwards.
        """
        payload = {"COMPANY_ID": "18", "COMPANY_NAME": "Order All", "COMPANY_CITY": "Boston"}
        assert (await client.post("/company", json=payload)).status_code == 200

        resp = await client.post("/company", json=payload)

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "persistence_failure"
        assert "UNIQUE constraint failed" in body["message"]
        assert engine.sync_engine.pool.checkedout() == 0


class TestConcurrency:

    async def test_connections_never_exceed_pool_size(self, client, engine, settings, create_agent):
        """
        Behavior:
            - 20 concurrent GETs against a pool of 3 all succeed.
            - At no point are more than 3 connections checked out.

        Importance:
            - The pool is the only concurrency control; excess requests must wait, not fail.
        """
        await create_agent()
        pool = engine.sync_engine.pool
        state = {"current": 0, "peak": 0}

        def on_checkout(*args):
            state["current"] += 1
            state["peak"] = max(state["peak"], state["current"])

        def on_checkin(*args):
            state["current"] -= 1

        event.listen(pool, "checkout", on_checkout)
        event.listen(pool, "checkin", on_checkin)
        try:
            responses = await asyncio.gather(*(client.get("/agents") for _ in range(20)))
        finally:
            event.remove(pool, "checkout", on_checkout)
            event.remove(pool, "checkin", on_checkin)

        assert all(r.status_code == 200 for r in responses)
        assert 1 <= state["peak"] <= settings.DB_CONNECTION_LIMIT
        assert pool.checkedout() == 0


class TestApplicationSurface:

    async def test_request_id_header(self, client):
        generated = await client.get("/agents")
        echoed = await client.get("/agents", headers={"X-Request-ID": "trace-1"})

        assert generated.headers["X-Request-ID"]
        assert echoed.headers["X-Request-ID"] == "trace-1"

    async def test_docs_and_openapi(self, client):
        docs = await client.get("/api-docs")
        spec = (await client.get("/openapi.json")).json()

        assert docs.status_code == 200
        assert spec["info"]["title"] == "Sample API"
        for path in ("/agents", "/company/{key}", "/customer", "/orders/{key}"):
            assert path in spec["paths"]

    async def test_lifespan_creates_tables_when_enabled(self, settings):
        """
        Behavior:
            - With DB_CREATE_TABLES the app creates its tables at startup.
            - An app that built its own engine serves requests from it.
        """
        settings = settings.model_copy(update={"DB_CREATE_TABLES": True})
        app = create_app(settings)

        async with app.router.lifespan_context(app):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                resp = await ac.get("/company")

        assert resp.status_code == 200
        assert resp.json() == []


@pytest.mark.parametrize("path", ["/agents", "/company", "/customer", "/orders"])
async def test_every_collection_lists_empty(client, path):
    resp = await client.get(path)

    assert resp.status_code == 200
    assert resp.json() == []


async def test_injected_engine_survives_app_shutdown(settings):
    engine = build_engine(settings)
    try:
        await create_tables(engine)
        app = create_app(settings, engine=engine)

        async with app.router.lifespan_context(app):
            pass

        async with engine.connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
    finally:
        await engine.dispose()


# (path, minimal create body, key, label) for every collection
ENTITIES = [
    ("/agents", {"AGENT_CODE": "A001", "AGENT_NAME": "Alice"}, "A001", "Agent"),
    ("/company", {"COMPANY_ID": "18", "COMPANY_NAME": "Order All"}, "18", "Company"),
    ("/customer", {"CUST_CODE": "C00001", "CUST_NAME": "Micheal"}, "C00001", "Customer"),
    ("/orders", {"ORD_NUM": "200100"}, "200100", "Order"),
]


class TestEveryEntity:

    @pytest.mark.parametrize("path, body, key, label", ENTITIES)
    async def test_empty_patch_reports_the_existing_row(self, client, path, body, key, label):
        assert (await client.post(path, json=body)).status_code == 200

        resp = await client.patch(f"{path}/{key}", json={})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": f"{label} updated", "result": {"affectedRows": 1}}

    @pytest.mark.parametrize("path, body, key, label", ENTITIES)
    async def test_delete_missing_key_affects_nothing(self, client, path, body, key, label):
        resp = await client.delete(f"{path}/{key}")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": f"{label} deleted", "result": {"affectedRows": 0}}

    @pytest.mark.parametrize("path, body, key, label", ENTITIES)
    async def test_create_without_primary_key_writes_nothing(self, client, path, body, key, label):
        primary_key = next(iter(body))
        incomplete = {name: value for name, value in body.items() if name != primary_key}

        resp = await client.post(path, json=incomplete)

        assert resp.status_code == 400
        assert primary_key in resp.json()["fields"]
        assert (await client.get(path)).json() == []

    @pytest.mark.parametrize("path, body, key, label", ENTITIES)
    async def test_delete_removes_the_row(self, client, path, body, key, label):
        await client.post(path, json=body)

        resp = await client.delete(f"{path}/{key}")

        assert resp.json()["result"] == {"affectedRows": 1}
        assert (await client.get(path)).json() == []


class TestOrderUpdates:

    async def test_patch_order_date(self, client, sample_order_data):
        await client.post("/orders", json=sample_order_data)

        resp = await client.patch("/orders/200100", json={"ORD_DATE": "2008-09-15", "ADVANCE_AMOUNT": "250.5"})

        assert resp.status_code == 200
        [order] = (await client.get("/orders")).json()
        assert order["ORD_DATE"] == "2008-09-15"
        assert order["ADVANCE_AMOUNT"] == 250.5
        assert order["ORD_AMOUNT"] == 1000
        assert order["ORD_DESCRIPTION"] == "SOD"

    async def test_put_order_replaces_every_field(self, client, sample_order_data):
        await client.post("/orders", json=sample_order_data)
        body = {
            "ORD_AMOUNT": 3500,
            "ADVANCE_AMOUNT": None,
            "ORD_DATE": "2008-07-20",
            "CUST_CODE": "C00009",
            "AGENT_CODE": "A002",
            "ORD_DESCRIPTION": "Reorder",
        }

        resp = await client.put("/orders/200100", json=body)

        assert resp.status_code == 200
        assert resp.json()["message"] == "Order fully updated"
        [order] = (await client.get("/orders")).json()
        assert order == {"ORD_NUM": "200100", **body}

    async def test_put_order_with_bad_date_is_rejected(self, client, sample_order_data):
        await client.post("/orders", json=sample_order_data)
        body = {name: value for name, value in sample_order_data.items() if name != "ORD_NUM"}
        body["ORD_DATE"] = "2008-02-30"

        resp = await client.put("/orders/200100", json=body)

        assert resp.status_code == 400
        assert resp.json()["fields"] == ["ORD_DATE"]
        [order] = (await client.get("/orders")).json()
        assert order["ORD_DATE"] == "2008-08-01"


class TestCustomerUpdates:

    async def test_put_customer_numeric_fields(self, client):
        await client.post("/customer", json={"CUST_CODE": "C00001", "CUST_NAME": "Micheal"})
        body = {
            "CUST_NAME": "Micheal",
            "CUST_CITY": "New York",
            "WORKING_AREA": "New York",
            "CUST_COUNTRY": "USA",
            "GRADE": "2",
            "OPENING_AMT": 3000,
            "RECEIVE_AMT": "5000.00",
            "PAYMENT_AMT": 2000.5,
            "OUTSTANDING_AMT": "5999.5",
            "PHONE_NO": "CCCCCCC",
            "AGENT_CODE": "A008",
        }

        resp = await client.put("/customer/C00001", json=body)

        assert resp.status_code == 200
        [customer] = (await client.get("/customer")).json()
        assert customer["GRADE"] == 2
        assert customer["OPENING_AMT"] == 3000
        assert customer["RECEIVE_AMT"] == 5000
        assert customer["PAYMENT_AMT"] == 2000.5
        assert customer["OUTSTANDING_AMT"] == 5999.5

    async def test_patch_customer_grade(self, client):
        await client.post("/customer", json={"CUST_CODE": "C00001", "CUST_NAME": "Micheal", "GRADE": 1})

        resp = await client.patch("/customer/C00001", json={"GRADE": 3.0, "PAYMENT_AMT": "12.25"})

        assert resp.status_code == 200
        [customer] = (await client.get("/customer")).json()
        assert customer["GRADE"] == 3
        assert customer["PAYMENT_AMT"] == 12.25
        assert customer["CUST_NAME"] == "Micheal"

    async def test_patch_customer_grade_rejects_non_ascii_digits(self, client):
        await client.post("/customer", json={"CUST_CODE": "C00001", "CUST_NAME": "Micheal", "GRADE": 1})

        resp = await client.patch("/customer/C00001", json={"GRADE": "١٢"})

        assert resp.status_code == 400
        assert resp.json()["errors"][0]["reason"] == "GRADE must be an integer"


async def test_integer_beyond_float_range_is_a_validation_failure(client):
    """
    Behavior:
        - A JSON integer too large for a float in a numeric field answers 400
          with the field's violation, and nothing is stored.
    """
    raw = b'{"AGENT_CODE": "A001", "AGENT_NAME": "Alice", "COMMISSION": 1' + b"0" * 400 + b"}"

    resp = await client.post("/agents", content=raw, headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["errors"] == [
        {"field": "COMMISSION", "reason": "COMMISSION must be a number", "location": "body"},
    ]
    assert (await client.get("/agents")).json() == []
