"""
Provider pricing clients and rate extractors.

Clients are created through cloudcost.fetch_data.factory.PricingClientFactory.
"""
