"""Farm market backend package.

Marketplace REST API (commodities, regions, prices, harvests) with
asynchronous Excel report generation.
"""

__all__: list[str] = []
