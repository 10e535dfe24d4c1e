"""Test configuration and fixtures"""

import hashlib
import hmac
import json
import os
import time
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("PUBLIC_BASE_URL", "https://bakery.test")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from bakery.main import app
from bakery.database import Base, get_db
from bakery.api.auth import create_access_token
from bakery.api.deps import get_delivery_checker, get_payment_processor
from bakery.fulfillment.delivery import DeliveryEligibility
from bakery.fulfillment.schedule import default_schedule_config
from bakery.models.custom_order import CustomOrderRequest
from bakery.models.menu import MenuItem, MenuItemVariant
from bakery.models.store_settings import STORE_SETTINGS_ID, StoreSettings
from bakery.payments.processor import (
    ConnectedAccount,
    PaymentProcessor,
    RoutingCapabilityError,
    SessionCreated,
    SessionCreationFailed,
    StripePaymentProcessor,
)

# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
WEBHOOK_SECRET = "whsec_test_secret"
CONNECTED_ACCOUNT_ID = "acct_test_bakery"
ADMIN_EMAIL = "owner@bakery.test"


def future_date(days: int = 3) -> str:
    """A date inside the default booking window, in store-local time"""
    today = datetime.now(ZoneInfo("America/New_York")).date()
    return (today + timedelta(days=days)).isoformat()


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header for a raw payload"""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def completed_event(session_id: str, metadata: dict, amount_total: int = 998, event_id: str = None) -> str:
    """Serialized checkout.session.completed event"""
    return json.dumps(
        {
            "id": event_id or f"evt_{session_id}",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": session_id,
                    "object": "checkout.session",
                    "amount_total": amount_total,
                    "metadata": metadata,
                    "customer_details": {
                        "name": "Jamie Customer",
                        "email": "jamie@example.com",
                        "phone": "+13055550100",
                    },
                }
            },
        }
    )


class FakeProcessor(PaymentProcessor):
    """In-memory stand-in for Stripe"""

    def __init__(self, account=None, reject_routing=False, fail_sessions=False, webhook_secret=WEBHOOK_SECRET):
        self.account = account
        self.reject_routing = reject_routing
        self.fail_sessions = fail_sessions
        self.created_accounts = []
        self.account_links = []
        self.sessions = []
        self._verifier = StripePaymentProcessor(api_key="sk_test_dummy", webhook_secret=webhook_secret)

    async def create_account(self) -> str:
        account_id = f"acct_new_{len(self.created_accounts) + 1}"
        self.created_accounts.append(account_id)
        self.account = ConnectedAccount(id=account_id, transfers_active=False)
        return account_id

    async def create_account_link(self, account_id, refresh_url, return_url) -> str:
        self.account_links.append((account_id, refresh_url, return_url))
        return f"https://connect.stripe.test/setup/{account_id}"

    async def retrieve_account(self, account_id):
        if self.account is not None and self.account.id == account_id:
            return self.account
        return None

    async def create_checkout_session(self, line_items, metadata, destination_account_id=None):
        self.sessions.append(
            {"line_items": list(line_items), "metadata": dict(metadata), "destination": destination_account_id}
        )
        if self.fail_sessions:
            return SessionCreationFailed(message="card_declined", code="card_declined")
        if destination_account_id and self.reject_routing:
            return RoutingCapabilityError(message="insufficient capabilities")
        number = len(self.sessions)
        return SessionCreated(session_id=f"cs_test_{number}", client_secret=f"cs_test_{number}_secret")

    def verify_webhook(self, payload, signature):
        return self._verifier.verify_webhook(payload, signature)


class FakeDeliveryChecker:
    """Delivery checker that reports a fixed distance"""

    def __init__(self, distance_miles: float = 2.5, max_distance_miles: float = 5.0, ok: bool = True):
        self.distance_miles = distance_miles
        self.max_distance_miles = max_distance_miles
        self.ok = ok
        self.checked = []

    async def check(self, address: str) -> DeliveryEligibility:
        self.checked.append(address)
        if not self.ok:
            return DeliveryEligibility(ok=False, error="We couldn't verify that delivery address.")
        return DeliveryEligibility(
            ok=True,
            eligible=self.distance_miles <= self.max_distance_miles,
            distance_miles=self.distance_miles,
        )


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def store_settings(test_db):
    """Store settings row with a connected account on file"""
    row = StoreSettings(
        id=STORE_SETTINGS_ID,
        stripe_account_id=CONNECTED_ACCOUNT_ID,
        fulfillment_schedule=default_schedule_config().model_dump(),
    )
    test_db.add(row)
    await test_db.commit()
    return row


@pytest.fixture
async def test_menu_items(test_db):
    """Create test menu items"""
    croissant = MenuItem(name="Butter Croissant", price_cents=499, category="pastry")
    sourdough = MenuItem(name="Sourdough Loaf", price_cents=900, category="bread")
    retired = MenuItem(name="Pumpkin Loaf", price_cents=1100, category="bread", is_active=False)
    cookie = MenuItem(name="Chocolate Chip Cookie", price_cents=300, category="cookie")
    cookie.variants = [
        MenuItemVariant(label="Half dozen", unit_count=6, price_cents=1500, sort_order=0),
        MenuItemVariant(label="Dozen", unit_count=12, price_cents=2800, sort_order=1, is_active=False),
    ]

    items = [croissant, sourdough, retired, cookie]
    for item in items:
        test_db.add(item)

    await test_db.commit()
    return {
        "croissant": croissant,
        "sourdough": sourdough,
        "retired": retired,
        "cookie": cookie,
        "half_dozen": cookie.variants[0],
        "dozen": cookie.variants[1],
    }


@pytest.fixture
async def custom_order(test_db):
    """A pending bespoke request"""
    request = CustomOrderRequest(
        customer_name="Ana Perez",
        customer_email="ana@example.com",
        desired_items="Two-tier birthday cake",
        request_details="Vanilla sponge, strawberry filling",
        fulfillment_preference="pickup",
    )
    test_db.add(request)
    await test_db.commit()
    return request


@pytest.fixture
async def broken_audit_log(test_db):
    """Make every audit insert fail"""
    await test_db.execute(text("DROP TABLE admin_audit_logs"))
    await test_db.commit()


@pytest.fixture
def processor():
    """Fake processor whose connected account can receive transfers"""
    return FakeProcessor(account=ConnectedAccount(id=CONNECTED_ACCOUNT_ID, transfers_active=True))


@pytest.fixture
def delivery_checker():
    return FakeDeliveryChecker()


@pytest.fixture
def notifications(monkeypatch):
    """Capture order notifications instead of queueing Celery tasks"""
    sent = []
    monkeypatch.setattr("bakery.webhooks.stripe.enqueue_order_notification", sent.append)
    return sent


@pytest.fixture
async def client(test_db, processor, delivery_checker, notifications):
    """Create test client with overridden database and collaborators"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_processor] = lambda: processor
    app.dependency_overrides[get_delivery_checker] = lambda: delivery_checker

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(client):
    """Create admin authenticated test client"""
    token = create_access_token(ADMIN_EMAIL)
    client.headers["Authorization"] = f"Bearer {token}"
    return client
