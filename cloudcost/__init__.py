"""
Pricing core of the CloudCost service.

Rate extraction and provider pricing clients live in cloudcost.fetch_data;
cache, aggregation and the comparison engine sit at this level.
"""
