from unittest.mock import AsyncMock, patch

from cloudcost.models import Provider, RateTriple


USAGE = {"computeHours": 10, "storageGB": 50, "dataGB": 10}


def upstream_calls(stub_clients):
    return sum(client.upstream.await_count for client in stub_clients.values())


# ----------------------------------------------------------------
# Health
# ----------------------------------------------------------------

def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ----------------------------------------------------------------
# POST /compare
# ----------------------------------------------------------------

def test_compare_with_all_providers_on_static_rates(api_client):
    response = api_client.post("/compare", json=USAGE)

    assert response.status_code == 200
    body = response.json()
    totals = {row["provider"]: row["total"] for row in body["results"]}
    assert totals == {"AWS": 2.166, "Azure": 2.17, "GCP": 1.9}
    assert body["recommendation"]["chosen"] == {"type": "single", "provider": "GCP", "total": 1.9}
    assert body["recommendation"]["mixed"]["total"] == 1.9
    assert body["recommendation"]["savings"] == 0
    assert len(body["recommendation"]["tips"]) >= 3


def test_compare_missing_field_returns_400_without_pricing(api_client, stub_clients):
    response = api_client.post("/compare", json={"computeHours": 10, "dataGB": 10})

    assert response.status_code == 400
    assert response.json() == {"error": "Please provide computeHours, storageGB, and dataGB"}
    assert upstream_calls(stub_clients) == 0


def test_compare_null_field_returns_400(api_client):
    response = api_client.post("/compare", json={"computeHours": 10, "storageGB": None, "dataGB": 10})

    assert response.status_code == 400
    assert response.json()["error"] == "Please provide computeHours, storageGB, and dataGB"


def test_compare_negative_value_returns_400(api_client, stub_clients):
    response = api_client.post("/compare", json={"computeHours": -1, "storageGB": 50, "dataGB": 10})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert body["details"][0]["loc"][-1] == "computeHours"
    assert upstream_calls(stub_clients) == 0


def test_compare_non_finite_value_returns_400(api_client, stub_clients):
    # Python's json module accepts the bare Infinity / NaN tokens
    for token in ("Infinity", "-Infinity", "NaN"):
        response = api_client.post(
            "/compare",
            content=f'{{"computeHours": {token}, "storageGB": 50, "dataGB": 10}}',
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request"
        assert body["details"][0]["loc"][-1] == "computeHours"
    assert upstream_calls(stub_clients) == 0


def test_compare_unknown_provider_returns_400_without_pricing(api_client, stub_clients):
    response = api_client.post("/compare", json={**USAGE, "provider": "Oracle"})

    assert response.status_code == 400
    assert response.json() == {"error": "Unknown provider filter"}
    assert upstream_calls(stub_clients) == 0


def test_compare_provider_filter_is_case_insensitive(api_client, stub_clients):
    response = api_client.post("/compare", json={**USAGE, "provider": "azure"})

    assert response.status_code == 200
    body = response.json()
    assert [row["provider"] for row in body["results"]] == ["Azure"]
    assert body["recommendation"]["chosen"] == {"type": "single", "provider": "Azure", "total": 2.17}
    assert stub_clients[Provider.AWS].upstream.await_count == 0


def test_compare_empty_strings_count_as_absent(api_client):
    response = api_client.post("/compare", json={**USAGE, "provider": "", "region": "", "instanceSize": ""})

    assert response.status_code == 200
    assert len(response.json()["results"]) == 3


def test_compare_passes_hints_to_clients(api_client, stub_clients):
    api_client.post("/compare", json={**USAGE, "region": "eu-west-1", "instanceSize": "c5.large", "fresh": True})

    assert stub_clients[Provider.AWS].upstream.await_args.args == ("eu-west-1", "c5.large")
    assert stub_clients[Provider.GCP].upstream.await_args.args == ("us-central1", "e2-standard-2")


def test_compare_reports_cache_hits(api_client, stub_clients):
    stub_clients[Provider.AWS].upstream.side_effect = None
    stub_clients[Provider.AWS].upstream.return_value = RateTriple(compute=0.096, storage=0.023, data=0.09)

    first = api_client.post("/compare", json=USAGE).json()
    second = api_client.post("/compare", json=USAGE).json()

    assert first["results"][0]["resolvedFromCache"] is False
    assert second["results"][0]["resolvedFromCache"] is True
    assert second["results"][0]["rates"] == {"compute": 0.096, "storage": 0.023, "data": 0.09}
    assert stub_clients[Provider.AWS].upstream.await_count == 1


def test_compare_unexpected_failure_returns_500(api_client, aggregator):
    with patch.object(aggregator, "get_all_results", AsyncMock(side_effect=RuntimeError("boom"))):
        response = api_client.post("/compare", json=USAGE)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to compare costs", "details": "boom"}


# ----------------------------------------------------------------
# GET /pricing/{provider}
# ----------------------------------------------------------------

def test_pricing_provider_defaults(api_client):
    response = api_client.get("/pricing/aws")

    assert response.status_code == 200
    assert response.json() == {
        "provider": "AWS",
        "region": "us-east-1",
        "instanceType": "m5.large",
        "pricing": {"compute": 0.0116, "storage": 0.023, "data": 0.09},
    }


def test_pricing_provider_echoes_normalized_inputs(api_client):
    response = api_client.get("/pricing/AZURE", params={"region": "westeurope", "instanceType": "m5.large"})

    assert response.status_code == 200
    body = response.json()
    assert body["provider"] == "Azure"
    assert body["region"] == "westeurope"
    assert body["instanceType"] == "D2s v3"


def test_pricing_unknown_provider_returns_400(api_client, stub_clients):
    response = api_client.get("/pricing/oracle")

    assert response.status_code == 400
    assert "error" in response.json()
    assert upstream_calls(stub_clients) == 0


def test_pricing_provider_maps_azure_arm_size_name(api_client):
    response = api_client.get("/pricing/azure", params={"instanceType": "Standard_D2s_v3"})

    assert response.status_code == 200
    assert response.json()["instanceType"] == "D2s v3"


def test_pricing_provider_unexpected_failure_returns_500(api_client, aggregator):
    with patch.object(aggregator, "get_provider_result", AsyncMock(side_effect=RuntimeError("boom"))):
        response = api_client.get("/pricing/aws")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch AWS pricing", "details": "boom"}


# ----------------------------------------------------------------
# Pricing cache
# ----------------------------------------------------------------

def test_cache_status_lists_live_entries(api_client, stub_clients):
    stub_clients[Provider.GCP].upstream.side_effect = None
    stub_clients[Provider.GCP].upstream.return_value = RateTriple(compute=0.067, storage=0.02, data=0.08)

    api_client.post("/compare", json=USAGE)
    response = api_client.get("/pricing/cache")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    # Static fallbacks are not cached
    assert body["cache"]["size"] == 1
    entry = body["cache"]["entries"][0]
    assert entry["key"] == "gcp-us-central1-e2-standard-2"
    assert entry["age"] == 0
    assert entry["stale"] is False


def test_cache_clear(api_client, stub_clients, cache):
    stub_clients[Provider.GCP].upstream.side_effect = None
    stub_clients[Provider.GCP].upstream.return_value = RateTriple(compute=0.067, storage=0.02, data=0.08)
    api_client.get("/pricing/gcp")
    assert len(cache) == 1

    response = api_client.post("/pricing/cache/clear")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "message" in response.json()
    assert api_client.get("/pricing/cache").json()["cache"] == {"size": 0, "entries": []}
