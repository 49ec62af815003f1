"""HTTP routers of the CloudCost REST API."""
