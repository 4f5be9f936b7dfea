"""CatalogRec: catalog query and recommendation engine.

This package provides the backend engine for smart collections and product
recommendations over a product catalog.

Modules:
    api: FastAPI application and REST API endpoints
    catalog: Product store, rule compiler and smart collection syncer
    recommender: Candidate recall, scoring and ranking
"""

__version__ = "0.1.0"
