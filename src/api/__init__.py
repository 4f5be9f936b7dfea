"""FastAPI application module for CatalogRec.

This module contains the FastAPI application, route handlers, and API
endpoints for smart collection syncing and product recommendations, along
with the service's exception types, logging setup and metrics.
"""
