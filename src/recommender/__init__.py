"""Recommender module for CatalogRec.

Multi-signal candidate recall, additive scoring and ranking for related and
suggested products.
"""
