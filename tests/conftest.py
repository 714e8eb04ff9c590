"""
tests/conftest.py
Shared fixtures: an in-memory Supabase double, one seeded provider organization
and an httpx AsyncClient bound to the FastAPI app.
"""

import copy
import re
import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cateringhub.database.supabase_client import get_supabase
from cateringhub.main import app
from cateringhub.modules.auth.service import clear_auth_cache

PROVIDER_ID = "prov-1"
OTHER_PROVIDER_ID = "prov-2"
TEAM_ID = "team-1"
LOCATION_ID = "loc-1"


def auth_headers(name: str) -> Dict[str, str]:
    """Bearer header for one of the seeded users ("owner", "staff", ...)."""
    return {"Authorization": f"Bearer token-{name}"}


def future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


# ── Supabase double ────────────────────────────────────────────────────────────

class FakeAPIError(Exception):
    """Shape of postgrest.APIError as far as the services look at it."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


def _like(pattern: str) -> "re.Pattern":
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _sort_key(value: Any):
    return (value is None, value if value is not None else 0)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.columns = "*"
        self.count_mode = None
        self.payload = None
        self.filters: List[Callable[[dict], bool]] = []
        self.orders: List[tuple] = []
        self.window = None
        self.max_rows = None
        self.single = False

    # operations
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload):
        self.op, self.payload = "upsert", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    # filters
    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: r.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def is_(self, column, value):
        if value in ("null", None):
            self.filters.append(lambda r: r.get(column) is None)
        else:
            self.filters.append(lambda r: r.get(column) is value)
        return self

    def ilike(self, column, pattern):
        regex = _like(pattern)
        self.filters.append(lambda r: r.get(column) is not None and bool(regex.match(str(r.get(column)))))
        return self

    def or_(self, expression: str):
        clauses = []
        for part in expression.split(","):
            column, op, value = part.split(".", 2)
            if op == "ilike":
                clauses.append((column, _like(value)))
            elif op == "eq":
                clauses.append((column, re.compile("^" + re.escape(value) + "$")))
            else:
                raise NotImplementedError(op)
        self.filters.append(
            lambda r: any(r.get(c) is not None and rx.match(str(r.get(c))) for c, rx in clauses)
        )
        return self

    # modifiers
    def order(self, column, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.window = (start, end)
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def maybe_single(self):
        self.single = True
        return self

    # execution
    def _matching(self) -> List[dict]:
        return [r for r in self.db.tables.setdefault(self.table_name, []) if all(f(r) for f in self.filters)]

    def _project(self, row: dict) -> dict:
        if "*" in self.columns:
            return copy.deepcopy(row)
        names = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {name: copy.deepcopy(row.get(name)) for name in names}

    def execute(self):
        self.db.calls.append((self.table_name, self.op))
        failure = self.db.failures.get((self.table_name, self.op))
        if failure:
            raise failure

        if self.op == "insert":
            return FakeResponse(self.db._insert(self.table_name, self.payload))
        if self.op == "upsert":
            return FakeResponse(self.db._upsert(self.table_name, self.payload))
        if self.op == "update":
            rows = self._matching()
            self.db._check_unique(self.table_name, [{**r, **self.payload} for r in rows], exclude=rows)
            for row in rows:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse([copy.deepcopy(r) for r in rows])
        if self.op == "delete":
            rows = self._matching()
            doomed = {id(r) for r in rows}
            self.db.tables[self.table_name] = [r for r in self.db.tables[self.table_name] if id(r) not in doomed]
            return FakeResponse([copy.deepcopy(r) for r in rows])

        rows = self._matching()
        for column, desc in reversed(self.orders):
            rows = sorted(rows, key=lambda r: _sort_key(r.get(column)), reverse=desc)
        total = len(rows)
        if self.window:
            rows = rows[self.window[0]:self.window[1] + 1]
        if self.max_rows is not None:
            rows = rows[:self.max_rows]
        data = [self._project(r) for r in rows]
        if self.single:
            return FakeResponse(data[0]) if data else None
        return FakeResponse(data, total if self.count_mode == "exact" else None)


class FakeRPC:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db, self.name, self.params = db, name, params

    def execute(self):
        self.db.calls.append(("rpc", self.name))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise FakeAPIError(f"function {self.name} does not exist", "42883")
        return FakeResponse(handler(self.params))


class FakeAuth:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.sign_outs = 0

    def get_user(self, jwt: str = None):
        user = self.db.tokens.get(jwt)
        if user is None:
            raise FakeAPIError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=SimpleNamespace(
            id=user["id"],
            email=user["email"],
            user_metadata={"full_name": user.get("full_name")},
            app_metadata={},
            created_at=None,
            updated_at=None,
        ))

    def sign_in_with_password(self, credentials: dict):
        for token, user in self.db.tokens.items():
            if user["email"] == credentials["email"] and user.get("password") == credentials["password"]:
                return SimpleNamespace(
                    user=SimpleNamespace(id=user["id"], email=user["email"]),
                    session=SimpleNamespace(access_token=token, refresh_token=f"refresh-{token}"),
                )
        raise FakeAPIError("Invalid login credentials")

    def sign_out(self):
        self.sign_outs += 1


class FakeBucket:
    def __init__(self, db: "FakeSupabase", name: str):
        self.db, self.name = db, name

    def upload(self, path, content, file_options=None):
        self.db.objects[(self.name, path)] = (content, (file_options or {}).get("content-type"))
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.db.objects.pop((self.name, path), None)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self, db: "FakeSupabase"):
        self.db = db

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.db, bucket)


class FakeSupabase:
    """Enough of supabase.Client for the services: tables, rpc, auth, storage."""

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.unique: Dict[str, List[tuple]] = {
            "teams": [("provider_id", "service_location_id", "name")],
        }
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[tuple] = []
        self.tokens: Dict[str, dict] = {}
        self.users: Dict[str, dict] = {}
        self.objects: Dict[tuple, tuple] = {}
        self.auth = FakeAuth(self)
        self.storage = FakeStorage(self)
        self.rpc_handlers: Dict[str, Callable[[dict], Any]] = {
            "get_user_metadata": self._user_metadata,
            "get_team_capacity_info": self._team_capacity,
            "create_manual_booking": self._create_manual_booking,
        }

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRPC:
        return FakeRPC(self, name, params)

    def rows(self, table: str) -> List[dict]:
        return self.tables.setdefault(table, [])

    def row(self, table: str, row_id: str) -> Optional[dict]:
        return next((r for r in self.rows(table) if r["id"] == row_id), None)

    def fail(self, table: str, op: str, message: str = "connection reset", code: Optional[str] = None):
        self.failures[(table, op)] = FakeAPIError(message, code)

    def _check_unique(self, table: str, candidates: List[dict], exclude: List[dict] = ()):
        for columns in self.unique.get(table, []):
            skip = {id(r) for r in exclude}
            others = [r for r in self.rows(table) if id(r) not in skip]
            seen = {tuple(r.get(c) for c in columns) for r in others}
            for row in candidates:
                key = tuple(row.get(c) for c in columns)
                if key in seen:
                    raise FakeAPIError(f"duplicate key value violates unique constraint on {table}", "23505")
                seen.add(key)

    def _insert(self, table: str, payload) -> List[dict]:
        rows = payload if isinstance(payload, list) else [payload]
        now = datetime.now(timezone.utc).isoformat()
        prepared = [{"id": str(uuid.uuid4()), "created_at": now, **copy.deepcopy(r)} for r in rows]
        self._check_unique(table, prepared)
        self.rows(table).extend(prepared)
        return copy.deepcopy(prepared)

    def _upsert(self, table: str, payload) -> List[dict]:
        out = []
        for row in payload if isinstance(payload, list) else [payload]:
            existing = self.row(table, row["id"]) if row.get("id") else None
            if existing:
                existing.update(copy.deepcopy(row))
                out.append(copy.deepcopy(existing))
            else:
                out.extend(self._insert(table, row))
        return out

    # default database functions

    def _user_metadata(self, params):
        user = self.users.get(params["user_id"])
        if not user:
            return []
        return [{
            "id": params["user_id"],
            "email": user["email"],
            "raw_user_meta_data": {"full_name": user.get("full_name")},
        }]

    def _team_capacity(self, params):
        team = self.row("teams", params["p_team_id"])
        if team is None:
            return []
        booked = len([
            b for b in self.rows("bookings")
            if b.get("team_id") == team["id"]
            and b.get("event_date") == params["p_event_date"]
            and b.get("status") != "cancelled"
        ])
        capacity = team.get("daily_capacity")
        return [{
            "team_id": team["id"],
            "team_name": team["name"],
            "daily_capacity": capacity,
            "max_concurrent_events": team.get("max_concurrent_events"),
            "bookings_on_date": booked,
            "remaining_capacity": None if capacity is None else capacity - booked,
        }]

    def _create_manual_booking(self, params):
        row = {key[len("p_"):]: value for key, value in params.items()}
        row.update({"source": "manual"})
        row.setdefault("status", "pending")
        row["total_price"] = row.get("base_price")
        return self._insert("bookings", row)


# ── Seed data ──────────────────────────────────────────────────────────────────

SEED_USERS = {
    "owner": ("u-owner", "owner", None),
    "admin": ("u-admin", "admin", None),
    "supervisor": ("u-sup", "supervisor", TEAM_ID),
    "staff": ("u-staff", "staff", TEAM_ID),
    "floater": ("u-floater", "staff", None),
    "viewer": ("u-viewer", "viewer", None),
}


def seed(db: FakeSupabase) -> FakeSupabase:
    db.rows("providers").extend([
        {
            "id": PROVIDER_ID, "business_name": "Lutong Bahay Catering", "contact_person_name": "Ana Cruz",
            "mobile_number": "+639171234567", "email": "hello@lutongbahay.ph", "description": None,
            "tagline": None, "logo_url": None, "banner_image": None, "featured_image_url": None,
            "is_visible": True, "max_service_radius": 25, "daily_capacity": 3, "advance_booking_days": 7,
            "available_days": ["friday", "saturday", "sunday"], "social_media_links": None,
        },
        {"id": OTHER_PROVIDER_ID, "business_name": "Other Caterer"},
    ])
    db.rows("service_locations").extend([
        {
            "id": LOCATION_ID, "provider_id": PROVIDER_ID, "province": "Cebu", "city": "Cebu City",
            "barangay": "Lahug", "is_primary": True, "service_radius": 20,
        },
        {
            "id": "loc-2", "provider_id": PROVIDER_ID, "province": "Cebu", "city": "Mandaue",
            "barangay": "Banilad", "is_primary": False, "service_radius": None,
        },
    ])
    db.rows("teams").extend([
        {
            "id": TEAM_ID, "provider_id": PROVIDER_ID, "service_location_id": LOCATION_ID,
            "name": "Team Lahug", "description": None, "daily_capacity": 2,
            "max_concurrent_events": 1, "status": "active",
        },
        {
            "id": "team-archived", "provider_id": PROVIDER_ID, "service_location_id": LOCATION_ID,
            "name": "Old Team", "daily_capacity": None, "status": "archived",
        },
    ])
    for name, (user_id, role, team_id) in SEED_USERS.items():
        db.rows("provider_members").append({
            "id": f"m-{name}", "provider_id": PROVIDER_ID, "user_id": user_id, "role": role,
            "status": "active", "team_id": team_id, "created_at": "2026-01-01T00:00:00+00:00",
        })
        email = f"{name}@lutongbahay.ph"
        full_name = None if name == "floater" else name.title()
        db.users[user_id] = {"email": email, "full_name": full_name}
        db.tokens[f"token-{name}"] = {"id": user_id, "email": email, "full_name": full_name, "password": "secret123"}

    db.rows("provider_members").append({
        "id": "m-outsider", "provider_id": OTHER_PROVIDER_ID, "user_id": "u-outsider",
        "role": "owner", "status": "active", "team_id": None,
    })
    db.users["u-outsider"] = {"email": "outsider@example.com", "full_name": "Outsider"}
    db.tokens["token-outsider"] = {"id": "u-outsider", "email": "outsider@example.com"}

    db.rows("worker_profiles").extend([
        {
            "id": "w-1", "provider_id": PROVIDER_ID, "team_id": TEAM_ID, "name": "Ramon Dela Cruz",
            "role": "Server", "status": "active", "phone": "+639181112222", "hourly_rate": 120,
            "tags": ["server"], "certifications": [],
        },
        {
            "id": "w-2", "provider_id": PROVIDER_ID, "team_id": TEAM_ID, "name": "Liza Santos",
            "role": "Cook", "status": "inactive", "tags": [], "certifications": [],
        },
    ])
    db.rows("bookings").extend([
        {
            "id": "b-1", "provider_id": PROVIDER_ID, "team_id": TEAM_ID, "customer_id": "c-1",
            "customer_name": "Maria Santos", "customer_email": "maria@example.com",
            "event_date": future(14), "event_time": "17:00:00", "event_type": "Wedding",
            "guest_count": 120, "status": "confirmed", "source": "auto", "total_price": 85000,
            "created_at": (datetime.now(timezone.utc) - timedelta(days=30)).isoformat(),
            "confirmed_at": (datetime.now(timezone.utc) - timedelta(days=29)).isoformat(),
        },
        {
            "id": "b-2", "provider_id": PROVIDER_ID, "team_id": None, "customer_id": "c-1",
            "customer_name": "Jose Rizal", "customer_email": "jose@example.com",
            "event_date": future(3), "event_type": "Birthday", "guest_count": 40,
            "status": "pending", "source": "manual",
            "created_at": datetime.now(timezone.utc).isoformat(),
        },
        {
            "id": "b-3", "provider_id": PROVIDER_ID, "team_id": TEAM_ID, "customer_name": "Completed Corp",
            "event_date": "2026-01-10", "event_type": "Corporate", "status": "completed", "source": "auto",
        },
        {
            "id": "b-other", "provider_id": OTHER_PROVIDER_ID, "team_id": None,
            "customer_name": "Elsewhere", "event_date": future(5), "status": "pending",
        },
    ])
    return db


# ── Fixtures ───────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def db() -> FakeSupabase:
    return seed(FakeSupabase())


@pytest_asyncio.fixture
async def client(db: FakeSupabase):
    app.dependency_overrides[get_supabase] = lambda: db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def api(path: str, provider_id: str = PROVIDER_ID) -> str:
    return f"/api/providers/{provider_id}{path}"
