# tests/conftest.py
import datetime as dt
from decimal import Decimal
from types import SimpleNamespace

import pytest

import app.config.settings as settings_mod
from app.models.quantity import as_number, to_decimal
from app.services.auth_service import AuthService
from app.services.claim_service import ClaimService
from app.services.listing_service import ListingService
from app.services.post_service import PostService
from app.services.results import UploadError
from app.services.store import FoodShareStore


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    """
    Keep tests independent of any real credentials found in the environment or .env.
    """
    for attr in ("cloudinary_cloud_name", "cloudinary_api_key", "cloudinary_api_secret"):
        monkeypatch.setattr(settings_mod.settings, attr, None, raising=False)
    return monkeypatch


# --- Fake Supabase client ---
_EPOCH = dt.datetime(2026, 1, 1, 12, 0, tzinfo=dt.timezone.utc)


class FakeQuery:

    def __init__(self, db, table, op, payload=None):
        self._db = db
        self._table = table
        self._op = op
        self._payload = payload
        self._filters = []
        self._order = None
        self._limit = None

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def execute(self):
        self._db.check(self._table)
        self._db.calls.append((self._table, self._op))
        if self._op == "insert":
            rows = self._payload if isinstance(self._payload, list) else [self._payload]
            return SimpleNamespace(data=[self._db.insert(self._table, r) for r in rows], status_code=201)

        rows = [dict(r) for r in self._db.tables[self._table] if all(f(r) for f in self._filters)]
        if self._order:
            column, desc = self._order
            rows.sort(key=lambda r: r.get(column), reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(data=rows, status_code=200)


class FakeTable:

    def __init__(self, db, name):
        self._db = db
        self._name = name

    def select(self, *args, **kwargs):
        return FakeQuery(self._db, self._name, "select")

    def insert(self, rows):
        return FakeQuery(self._db, self._name, "insert", rows)


class FakeSupabase:
    """In-memory stand-in for the supabase-py client, including the admit_claim function."""

    def __init__(self):
        self.tables = {"posts": [], "claims": [], "users": []}
        self.calls = []
        self.failing = set()
        self._next_id = {}
        self._tick = 0

    def check(self, name):
        if name in self.failing:
            raise ConnectionError(f"{name}: connection refused")

    def now(self):
        self._tick += 1
        return (_EPOCH + dt.timedelta(seconds=self._tick)).isoformat()

    def insert(self, table, row):
        row = dict(row)
        if "id" not in row:
            self._next_id[table] = self._next_id.get(table, 0) + 1
            row["id"] = self._next_id[table]
        if table == "claims":
            row.setdefault("status", "accepted")
            row.setdefault("claimed_at", self.now())
        else:
            row.setdefault("created_at", self.now())
        self.tables[table].append(row)
        return dict(row)

    def table(self, name):
        return FakeTable(self, name)

    def rpc(self, fn, params):
        assert fn == "admit_claim"
        return SimpleNamespace(execute=lambda: self._admit_claim(**params))

    def _admit_claim(self, p_post_id, p_user_id, p_quantity, p_status="accepted"):
        self.check("rpc")
        self.calls.append(("rpc", "admit_claim"))
        post = next((p for p in self.tables["posts"] if p["id"] == p_post_id), None)
        if post is None:
            return SimpleNamespace(data={"outcome": "not_found"})
        claims = [c for c in self.tables["claims"] if c["post_id"] == p_post_id]
        if any(c["user_id"] == p_user_id for c in claims):
            return SimpleNamespace(data={"outcome": "duplicate"})
        # numeric arithmetic, as in Postgres; jsonb hands numbers back
        quantity = to_decimal(p_quantity)
        leftover = to_decimal(post["quantity_value"]) - sum(
            (to_decimal(c["claimed_quantity"]) for c in claims), Decimal(0)
        )
        if quantity > leftover:
            return SimpleNamespace(data={"outcome": "insufficient", "leftover": as_number(leftover)})
        claim = self.insert(
            "claims",
            {
                "post_id": p_post_id,
                "user_id": p_user_id,
                "claimed_quantity": as_number(quantity),
                "status": p_status,
            },
        )
        return SimpleNamespace(data={"outcome": "admitted", "claim": claim})


@pytest.fixture
def fake_supabase_client():
    return FakeSupabase()


@pytest.fixture
def store(fake_supabase_client):
    return FoodShareStore(client=fake_supabase_client)


@pytest.fixture
def seed_post(fake_supabase_client):
    """Insert a post row directly; returns the stored row."""

    def _seed(**overrides):
        row = {
            "food_name": "Veg Pulao",
            "food_type": "veg",
            "quantity_value": 10,
            "quantity_type": "plates",
            "expiry_timer": "2026-01-01T20:00:00+00:00",
            "freshness_status": "freshcooked",
            "image": ["https://res.cloudinary.com/demo/image/upload/foodshare/a.jpg"],
            "address": "Hostel 4 mess",
        }
        row.update(overrides)
        return fake_supabase_client.insert("posts", row)

    return _seed


# --- Fake image uploader ---
class FakeUploader:

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    async def upload(self, data, content_type="image/jpeg"):
        self.calls.append((data, content_type))
        n = len(self.calls)
        if n in self.fail_on:
            raise UploadError("cloudinary said no")
        return f"https://res.cloudinary.com/demo/image/upload/foodshare/img{n}.jpg"


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def post_service(store, uploader):
    return PostService(store=store, uploader=uploader)


@pytest.fixture
def claim_service(store):
    return ClaimService(store=store)


@pytest.fixture
def listing_service(store):
    return ListingService(store=store)


@pytest.fixture
def auth_service(store):
    return AuthService(store=store)
