"""Tests for the FastAPI application endpoints.

This module contains integration tests for the CatalogRec API endpoints,
including health checks, recommendation and collection endpoints.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.api.dependencies import set_engine
from src.api.main import app
from src.api.metrics import metrics_service
from src.catalog.models import Collection
from src.catalog.store import DataFrameProductStore
from src.engine import CatalogEngine

# Create test client
client = TestClient(app)


def _catalog():
    return [
        {"id": 1, "title": "Linen shirt", "tags": "summer, linen", "vendor": "Acme",
         "product_type": "Shirt", "price": 100.0, "rating": 4.0, "review_count": 20,
         "bestseller_score": 30.0, "created_at": "2024-01-01"},
        {"id": 2, "title": "Cotton shirt", "tags": "summer", "vendor": "Acme",
         "product_type": "Shirt", "price": 90.0, "rating": 4.8, "review_count": 80,
         "bestseller_score": 80.0, "created_at": "2024-01-02"},
        {"id": 3, "title": "Sandals", "tags": "beach", "vendor": "Globex",
         "product_type": "Shoes", "price": 120.0, "rating": 3.5, "review_count": 5,
         "bestseller_score": 60.0, "created_at": "2024-01-03"},
        {"id": 4, "title": "Boots", "tags": "winter", "vendor": "Globex",
         "product_type": "Shoes", "price": 300.0, "rating": 4.6, "review_count": 60,
         "bestseller_score": 10.0, "created_at": "2024-01-04"},
    ]


@pytest.fixture
def engine():
    """Install a small in-memory catalog as the API's engine."""
    collections = [
        Collection(id=1, title="Acme", is_smart=True, rule={"type": "vendor", "value": "Acme"}),
        Collection(id=2, title="Picks", is_smart=False),
    ]
    store = DataFrameProductStore.from_products(
        _catalog(), collections=collections, memberships={2: [3, 4, 1]}
    )
    engine = CatalogEngine(store)
    set_engine(engine)
    metrics_service.reset()
    yield engine
    set_engine(None)


def test_ping_endpoint():
    """Test that the /ping endpoint returns correct status and JSON."""
    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "X-Request-ID" in response.headers


def test_status_endpoint(engine):
    """Test that the /status endpoint reports the loaded catalog."""
    response = client.get("/status")

    assert response.status_code == 200
    data = response.json()

    assert data["catalog_loaded"] is True
    assert data["num_products"] == 4
    assert data["num_collections"] == 2
    assert isinstance(data["timestamp_last_loaded"], str)


def test_related_endpoint(engine):
    response = client.get("/products/1/related?limit=5")

    assert response.status_code == 200
    data = response.json()
    assert data["product_id"] == 1
    assert data["scores"] is None
    assert [p["id"] for p in data["products"]] == [2, 3, 4]
    assert sorted(data["products"][0]["tags"]) == ["summer"]


def test_related_endpoint_explain(engine):
    response = client.get("/products/1/related?explain=true")

    assert response.status_code == 200
    scores = response.json()["scores"]
    assert scores["2"]["match_reasons"] == ["price", "tags", "type", "vendor"]
    assert scores["2"]["relevance_score"] == pytest.approx(7.8)


def test_related_endpoint_signals_filter(engine):
    response = client.get("/products/1/related?signals=price&explain=true")

    data = response.json()
    assert [p["id"] for p in data["products"]] == [2, 3]
    assert all(s["match_reasons"] == ["price"] for s in data["scores"].values())


def test_related_endpoint_unknown_product_is_empty(engine):
    response = client.get("/products/999/related")

    assert response.status_code == 200
    assert response.json()["products"] == []


def test_suggested_endpoint(engine):
    response = client.get("/products/suggested?strategy=bestsellers&limit=2")

    assert response.status_code == 200
    data = response.json()
    assert data["strategy"] == "bestsellers"
    assert [p["id"] for p in data["products"]] == [2, 3]


def test_suggested_endpoint_unknown_strategy_uses_mixed(engine):
    response = client.get("/products/suggested?strategy=popular&limit=3")

    assert response.status_code == 200
    data = response.json()
    assert data["strategy"] == "mixed"
    assert len({p["id"] for p in data["products"]}) == len(data["products"])


def test_sync_collection_endpoint(engine):
    response = client.post("/collections/1/sync")

    assert response.status_code == 200
    assert response.json() == {"collection_id": 1, "member_count": 2}

    products = client.get("/collections/1/products").json()["products"]
    assert [p["id"] for p in products] == [1, 2]


def test_sync_all_endpoint(engine):
    response = client.post("/collections/sync")

    assert response.status_code == 200
    assert response.json() == {"members_written": 2}


def test_collection_products_pagination(engine):
    response = client.get("/collections/2/products?page=2&limit=2")

    assert response.status_code == 200
    data = response.json()
    assert data["page"] == 2
    assert [p["id"] for p in data["products"]] == [1]


def test_reorder_collection_endpoint(engine):
    response = client.put("/collections/2/order", json={"product_ids": [1, 3]})

    assert response.status_code == 200
    assert response.json() == {"reordered": True}
    products = client.get("/collections/2/products").json()["products"]
    assert [p["id"] for p in products] == [1, 3, 4]


def test_reorder_smart_collection_is_refused(engine):
    response = client.put("/collections/1/order", json={"product_ids": [2, 1]})

    assert response.status_code == 200
    assert response.json() == {"reordered": False}


def test_collection_stats_endpoint(engine):
    response = client.get("/collections/2/stats")

    assert response.status_code == 200
    assert response.json() == {"collection_id": 2, "product_count": 3, "is_smart": False}


def test_rule_options_endpoint(engine):
    response = client.get("/collections/rule-options")

    assert response.status_code == 200
    assert response.json() == {"product_types": ["Shirt", "Shoes"], "vendors": ["Acme", "Globex"]}


def test_metrics_endpoint(engine):
    client.get("/products/1/related")
    client.get("/products/1/related")
    client.get("/products/suggested")
    client.post("/collections/1/sync")

    data = client.get("/metrics").json()

    assert data["requests"]["related"]["count"] == 2
    assert data["requests"]["suggested"]["count"] == 1
    assert data["syncs"] == {"succeeded": 1, "failed": 0, "members_written": 2}


def test_request_id_is_propagated():
    response = client.get("/ping", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
