"""Catalog module for CatalogRec.

Holds the product and collection models, the product store adapter, the
smart collection rule compiler and the collection syncer.
"""
