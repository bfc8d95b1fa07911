import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from main import app, get_db, get_session_factory


@pytest.fixture()
def client(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'api.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def _get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: factory
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_replace_and_load_month(client) -> None:
    resp = client.put(
        "/api/months/2025-03/categories",
        json=[
            {"type": "expense", "category": "Rent", "expected": 1200, "tags": ["rent"]},
            {"id": "salary", "type": "income", "category": "Salary", "expected": 4000},
        ],
    )
    assert resp.status_code == 200
    saved = resp.json()
    assert [c["category"] for c in saved] == ["Salary", "Rent"]
    assert saved[0]["id"] == "salary"
    assert saved[1]["expected"] == 1200.0

    month = client.get("/api/months/2025-03").json()
    assert [c["category"] for c in month["categories"]] == ["Salary", "Rent"]
    assert month["incoming_rollovers"] == []
    assert month["outgoing_rollovers"] == []

    assert client.get("/api/months").json() == ["2025-03"]


def test_copy_defaults_to_previous_month(client) -> None:
    client.put(
        "/api/months/2025-02/categories",
        json=[{"id": "food", "type": "expense", "category": "Food", "expected": 300}],
    )

    copied = client.post("/api/months/2025-03/categories/copy").json()

    assert [c["category"] for c in copied] == ["Food"]
    assert copied[0]["id"] != "food"
    assert client.post("/api/months/2025-05/categories/copy").json() == []


def test_single_category_save_and_delete(client) -> None:
    resp = client.put(
        "/api/categories/c1",
        json={
            "month": "2025-03",
            "sort_order": 2,
            "type": "expense",
            "category": "Fun",
            "expected": 50,
            "require_all": True,
            "amount_sign": "negative",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["id"] == "c1"

    config = client.get("/api/months/2025-03/config").json()
    assert config["expenses"]["Fun"] == {
        "expected": 50.0,
        "tags": [],
        "require_all": True,
        "amount_sign": "negative",
    }

    assert client.delete("/api/categories/c1").status_code == 204
    assert client.delete("/api/categories/c1").status_code == 204
    assert client.get("/api/months/2025-03").json()["categories"] == []


def test_rollovers_default_to_next_month(client) -> None:
    resp = client.put(
        "/api/months/2024-12/rollovers",
        json=[{"id": "r1", "from_category": "Food", "to_category": "Food", "amount": 12.5}],
    )
    assert resp.status_code == 200
    assert resp.json()[0]["amount"] == 12.5

    january = client.get("/api/months/2025-01").json()
    assert [t["id"] for t in january["incoming_rollovers"]] == ["r1"]

    resp = client.put(
        "/api/rollovers/r2",
        json={
            "source_month": "2025-01",
            "to_month": "2025-02",
            "from_category": "Fun",
            "to_category": "Savings",
            "amount": -3,
        },
    )
    assert resp.status_code == 200

    assert client.delete("/api/months/2024-12/rollovers").status_code == 204
    assert client.delete("/api/rollovers/r2").status_code == 204
    january = client.get("/api/months/2025-01").json()
    assert january["incoming_rollovers"] == []
    assert january["outgoing_rollovers"] == []


def test_malformed_month_is_rejected(client) -> None:
    resp = client.put("/api/months/2025-13/categories", json=[])
    assert resp.status_code == 400

    resp = client.put(
        "/api/categories/c1",
        json={"month": "March", "type": "expense", "category": "Fun", "expected": 1},
    )
    assert resp.status_code == 400


def test_legacy_import_runs_once(client) -> None:
    doc = {
        "income": {"Salary": {"expected": 4000, "tags": ["salary"]}},
        "expenses": {"Rent": {"expected": 1200, "tags": ["rent"]}},
    }

    first = client.post("/api/legacy-config/import?month=2025-01", json=doc).json()
    assert first["imported"] == 2
    assert first["skipped"] is False

    second = client.post("/api/legacy-config/import?month=2025-02", json=doc).json()
    assert second["imported"] == 0
    assert second["skipped"] is True
    assert client.get("/api/months").json() == ["2025-01"]

    bad = client.post("/api/legacy-config/import?month=2025-03", json={"income": []})
    assert bad.status_code == 400
