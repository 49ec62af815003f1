import json

import pytest

from cloudcost.exceptions import ExtractionError
from cloudcost.fetch_data.rate_extractor_aws import (
    STATIC_DEFAULTS_AWS,
    build_product_filters,
    extract_compute_rate,
    extract_rates,
    fallback_rates,
    region_to_location,
)


def make_product(instance_type="m5.large", location="US East (N. Virginia)", price="0.0960000000",
                 unit="Hrs", **attribute_overrides):
    attributes = {
        "instanceType": instance_type,
        "location": location,
        "tenancy": "Shared",
        "operatingSystem": "Linux",
        "preInstalledSw": "NA",
        "capacitystatus": "Used",
    }
    attributes.update(attribute_overrides)
    return json.dumps({
        "product": {"attributes": attributes},
        "terms": {
            "OnDemand": {
                "TERM1": {
                    "priceDimensions": {
                        "DIM1": {"unit": unit, "pricePerUnit": {"USD": price}},
                    }
                }
            }
        },
    })


def test_region_to_location_known_and_passthrough():
    assert region_to_location("eu-west-1") == "EU (Ireland)"
    assert region_to_location("xx-nowhere-9") == "xx-nowhere-9"


def test_build_product_filters_contains_all_attributes():
    filters = build_product_filters("us-east-1", "m5.large")
    fields = {f["Field"]: f["Value"] for f in filters}

    assert all(f["Type"] == "TERM_MATCH" for f in filters)
    assert fields == {
        "instanceType": "m5.large",
        "location": "US East (N. Virginia)",
        "tenancy": "Shared",
        "operatingSystem": "Linux",
        "preInstalledSw": "NA",
        "capacitystatus": "Used",
    }


def test_extract_compute_rate_from_matching_product():
    assert extract_compute_rate([make_product()], "us-east-1", "m5.large") == pytest.approx(0.096)


def test_extract_compute_rate_skips_non_matching_products():
    price_list = [
        make_product(operatingSystem="Windows", price="0.188"),
        make_product(capacitystatus="UnusedCapacityReservation", price="0.5"),
        make_product(price="0.096"),
    ]
    assert extract_compute_rate(price_list, "us-east-1", "m5.large") == pytest.approx(0.096)


def test_extract_compute_rate_accepts_parsed_documents():
    assert extract_compute_rate([json.loads(make_product())], "us-east-1", "m5.large") == pytest.approx(0.096)


def test_extract_compute_rate_ignores_zero_price_dimension():
    with pytest.raises(ExtractionError):
        extract_compute_rate([make_product(price="0.0000000000")], "us-east-1", "m5.large")


def test_extract_compute_rate_raises_when_nothing_matches():
    with pytest.raises(ExtractionError):
        extract_compute_rate([], "us-east-1", "m5.large")


def test_extract_rates_uses_live_compute_and_region_tables():
    rates = extract_rates([make_product(location="EU (Ireland)", price="0.107")], "eu-west-1", "m5.large")

    assert rates.compute == pytest.approx(0.107)
    assert rates.storage == 0.023
    assert rates.data == 0.09


def test_extract_rates_falls_back_per_component_on_malformed_payload():
    rates = extract_rates(["{not json"], "us-east-1", "m5.large")

    assert rates.compute == STATIC_DEFAULTS_AWS["compute"]["m5.large"]
    assert rates.storage == 0.023
    assert rates.data == 0.09


def test_fallback_rates_for_defaults():
    rates = fallback_rates("us-east-1", "m5.large")
    assert rates.to_dict() == {"compute": 0.0116, "storage": 0.023, "data": 0.09}


def test_fallback_rates_unknown_instance_and_region():
    rates = fallback_rates("xx-nowhere-9", "z9.huge")
    assert rates.to_dict() == {"compute": 0.0116, "storage": 0.023, "data": 0.09}
