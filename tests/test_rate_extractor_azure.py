import pytest

from cloudcost.exceptions import ExtractionError
from cloudcost.fetch_data.rate_extractor_azure import (
    build_retail_filter,
    extract_compute_rate,
    extract_rates,
    fallback_rates,
)


def make_row(sku="D2s v3", product="Virtual Machines DSv3 Series", price=0.096, region="eastus"):
    return {
        "productName": product,
        "meterName": sku,
        "skuName": sku,
        "unitOfMeasure": "1 Hour",
        "unitPrice": price,
        "armRegionName": region,
        "currencyCode": "USD",
        "type": "Consumption",
    }


def test_build_retail_filter():
    assert build_retail_filter("eastus", "D2s v3") == (
        "serviceName eq 'Virtual Machines' and armRegionName eq 'eastus' "
        "and skuName eq 'D2s v3' and priceType eq 'Consumption'"
    )


def test_build_retail_filter_escapes_quotes():
    odata_filter = build_retail_filter("eastus", "D2s' or skuName ne 'x")

    # The whole value stays inside one string literal
    assert "skuName eq 'D2s'' or skuName ne ''x' and priceType eq 'Consumption'" in odata_filter
    assert odata_filter.count(" or ") == 1


def test_extract_compute_rate_takes_first_matching_row():
    payload = {"Items": [make_row(price=0.096), make_row(price=0.2)]}
    assert extract_compute_rate(payload, "D2s v3") == pytest.approx(0.096)


def test_extract_compute_rate_skips_windows_and_spot_rows():
    payload = {"Items": [
        make_row(product="Virtual Machines DSv3 Series Windows", price=0.188),
        make_row(sku="D2s v3 Spot", price=0.01),
        make_row(sku="D2s v3 Low Priority", price=0.02),
        make_row(price=0.096),
    ]}
    assert extract_compute_rate(payload, "D2s v3") == pytest.approx(0.096)


def test_extract_compute_rate_raises_on_empty_items():
    with pytest.raises(ExtractionError):
        extract_compute_rate({"Items": []}, "D2s v3")


def test_extract_rates_uses_region_tables():
    rates = extract_rates({"Items": [make_row(price=0.11, region="westeurope")]}, "westeurope", "D2s v3")

    assert rates.compute == pytest.approx(0.11)
    assert rates.storage == 0.026
    assert rates.data == 0.085


def test_extract_rates_falls_back_on_negative_price():
    rates = extract_rates({"Items": [make_row(price=-1)]}, "eastus", "D2s v3")
    assert rates.compute == 0.012


def test_extract_rates_falls_back_on_missing_items():
    rates = extract_rates({}, "eastus", "B2s")
    assert rates.compute == 0.0104


def test_fallback_rates_for_defaults():
    assert fallback_rates("eastus", "D2s v3").to_dict() == {"compute": 0.012, "storage": 0.024, "data": 0.085}
