import asyncio
from typing import Any, List

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, PartialCredentialsError

import cloudcost.constants as CONSTANTS
from cloudcost.exceptions import ConfigurationError, UpstreamError
from cloudcost.fetch_data import rate_extractor_aws
from cloudcost.fetch_data.factory import CachedPricingClient
from cloudcost.logger import logger
from cloudcost.models import Provider, RateTriple


def _get_pricing_client(api_region: str, timeout_seconds: float) -> Any:
    """
    Create and return a boto3 pricing client.

    Credentials come from the standard AWS chain (environment, shared config,
    instance role). Retries are disabled; the aggregator owns fallback.
    """
    config = BotoConfig(
        connect_timeout=timeout_seconds,
        read_timeout=timeout_seconds,
        retries={"max_attempts": 1},
    )
    return boto3.client("pricing", region_name=api_region, config=config)


def _fetch_api_products(pricing_client: Any, region: str, instance_type: str) -> List[str]:
    filters = rate_extractor_aws.build_product_filters(region, instance_type)
    response = pricing_client.get_products(
        ServiceCode=CONSTANTS.AWS_EC2_SERVICE_CODE,
        Filters=filters,
        FormatVersion="aws_v1",
        MaxResults=100,
    )
    return response.get("PriceList", [])


class AWSPricingClient(CachedPricingClient):
    """EC2 on-demand pricing from the AWS Price List API."""

    provider = Provider.AWS

    def _client(self) -> Any:
        return _get_pricing_client(self.settings.AWS_PRICING_API_REGION, self.settings.UPSTREAM_TIMEOUT_SECONDS)

    async def _fetch_live(self, region: str, instance_type: str, fresh: bool = False) -> RateTriple:
        logger.info(f"🔍 Fetching AWS EC2 pricing for {instance_type} in {rate_extractor_aws.region_to_location(region)}...")

        # boto3 is synchronous, run it off the event loop
        try:
            price_list = await asyncio.wait_for(
                asyncio.to_thread(lambda: _fetch_api_products(self._client(), region, instance_type)),
                timeout=self.settings.UPSTREAM_TIMEOUT_SECONDS,
            )
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise ConfigurationError(f"AWS credentials not available: {e}", provider=self.provider.value) from e
        except asyncio.TimeoutError as e:
            raise UpstreamError(
                f"AWS Price List API timed out after {self.settings.UPSTREAM_TIMEOUT_SECONDS}s",
                provider=self.provider.value,
            ) from e
        except (ClientError, BotoCoreError) as e:
            raise UpstreamError(f"AWS Price List API error: {e}", provider=self.provider.value) from e

        logger.debug(f"   AWS returned {len(price_list)} products")
        return rate_extractor_aws.extract_rates(price_list, region, instance_type)

    def _fallback_rates(self, region: str, instance_type: str) -> RateTriple:
        return rate_extractor_aws.fallback_rates(region, instance_type)
