from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app import create_app
from notifications.channel.fake_email import FakeEmailAdapter
from ordering.order.order import Order, OrderStatus, PayableStatus
from shared.config import Settings
from shared.container import Container
from shared.db import Database

ADMIN_EMAIL = "admin@example.com"
PRINTER_EMAIL = "printer@example.com"
SITE_URL = "https://shop.example.com"
PRINTER_SECRET = "s3cret-printer-token"
ADMIN_KEY = "s3cret-admin-key"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


def _settings(**overrides) -> Settings:
    values = {
        "app_env": "test",
        "database_url": "sqlite://",
        "admin_email": ADMIN_EMAIL,
        "printer_email": PRINTER_EMAIL,
        "site_url": SITE_URL,
        "notification_max_retries": 3,
        "notification_retry_backoff_seconds": 60,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return _settings()


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.engine.dispose()


@pytest.fixture
def email():
    return FakeEmailAdapter()


@pytest.fixture
def container(settings, database, email):
    return Container.build(settings=settings, database=database, email=email)


@pytest.fixture
def secured_container(database, email):
    return Container.build(
        settings=_settings(printer_webhook_secret=PRINTER_SECRET),
        database=database,
        email=email,
    )


@pytest.fixture
def admin_container(database, email):
    return Container.build(
        settings=_settings(admin_api_key=ADMIN_KEY, printer_webhook_secret=PRINTER_SECRET),
        database=database,
        email=email,
    )


@pytest.fixture
def client(container):
    return TestClient(create_app(container))


@pytest.fixture
def secured_client(secured_container):
    return TestClient(create_app(secured_container))


@pytest.fixture
def admin_client(admin_container):
    return TestClient(create_app(admin_container))


@pytest.fixture
def make_order(database):
    """Insert an order and return its id.

    ``items`` defaults to a single line of qty 2 at 300 blank + 200 print.
    """

    def _make(
        status=OrderStatus.PAID,
        payable=PayableStatus.UNBATCHED,
        items=None,
        base_printer_fee_cents=None,
        email="customer@example.com",
        tracking_number=None,
    ):
        items = items or [{"qty": 2, "blank_cost_cents_snapshot": 300, "print_cost_cents_snapshot": 200}]
        order = Order.create(email=email, items_data=items, base_printer_fee_cents=base_printer_fee_cents)
        order.status = status.value
        order.printer_payable_status = payable.value
        order.tracking_number = tracking_number
        with database.session() as session:
            session.add(order)
        return order.id

    return _make


@pytest.fixture
def load_order(database):
    def _load(order_id):
        with database.session() as session:
            return session.get(Order, order_id)

    return _load
