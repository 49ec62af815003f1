#--------------------------------------------------------------------
# Upstream pricing endpoints
#--------------------------------------------------------------------
AZURE_RETAIL_PRICES_URL = "https://prices.azure.com/api/retail/prices"

AWS_EC2_SERVICE_CODE = "AmazonEC2"

# Cloud Billing Catalog service id of Compute Engine
GCP_COMPUTE_ENGINE_SERVICE_ID = "6F81-5844-456A"
GCP_SKU_PAGE_SIZE = 5000

#--------------------------------------------------------------------
# Provider defaults
#--------------------------------------------------------------------
AWS_DEFAULT_REGION = "us-east-1"
AWS_DEFAULT_INSTANCE_TYPE = "m5.large"

AZURE_DEFAULT_REGION = "eastus"
AZURE_DEFAULT_INSTANCE_TYPE = "D2s v3"

GCP_DEFAULT_REGION = "us-central1"
GCP_DEFAULT_INSTANCE_TYPE = "e2-standard-2"

#--------------------------------------------------------------------
# Units
#--------------------------------------------------------------------
SECONDS_PER_HOUR = 3600
NANOS_PER_UNIT = 1_000_000_000

# Number of decimals kept in cost figures returned to callers
COST_DECIMALS = 4
