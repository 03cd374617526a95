"""
Shared pytest fixtures for the Busify backend test suite.

Provides:
    - db: per-test session on an in-memory SQLite database (tables recreated)
    - storage / provisioner / transport: in-process fakes for collaborators
    - email_service: EmailService on a synchronous dispatcher
    - contract_service: ContractService wired to the fakes
    - client: FastAPI TestClient with dependencies overridden
    - operator / admin: caller identities, plus bearer headers for both
"""

import os
import tempfile

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="busify-uploads-")
os.environ.pop("MAIL_SERVER", None)

from concurrent.futures import Executor, Future
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from src import models  # noqa: F401
from src.auth.schemas import CallerIdentity
from src.auth.utils import create_access_token
from src.contracts.provisioning import ProvisionedOperator
from src.contracts.schemas import ContractRequest
from src.contracts.service import ContractService
from src.database import Base, SessionLocal, engine
from src.notifications.dispatcher import EmailDispatcher
from src.notifications.schemas import TicketInfo
from src.notifications.service import EmailService
from src.notifications.ticket_pdf import TicketDocumentService
from src.storage import StorageError


# ── Fakes ────────────────────────────────────────────────────────────────────

class SyncExecutor(Executor):
    """Runs submitted work inline so sends can be asserted immediately"""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class FakeTransport:
    def __init__(self):
        self.sent = []
        self.error = None

    def send(self, message):
        if self.error:
            raise self.error
        self.sent.append(message)


class FakeStorage:
    base_url = "https://files.busify.test"

    def __init__(self):
        self.files = {}
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False

    def upload(self, content, filename, folder):
        if self.fail_upload:
            raise StorageError("storage unavailable")
        public_id = f"{folder}/{len(self.files) + 1}_{filename}"
        self.files[public_id] = content
        return f"{self.base_url}/{public_id}"

    def delete(self, public_id):
        if self.fail_delete:
            raise StorageError("storage unavailable")
        self.deleted.append(public_id)
        return self.files.pop(public_id, None) is not None

    def extract_public_id(self, url):
        prefix = f"{self.base_url}/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]


class FakeProvisioner:
    def __init__(self):
        self.processed = []
        self.error = None
        self.temporary_password = "Temp-Pass-123"

    def process_accepted_contract(self, contract):
        if self.error:
            raise self.error
        self.processed.append(contract.id)
        return ProvisionedOperator(
            operator_id=100 + contract.id,
            user_id=200 + contract.id,
            email=contract.email,
            name=contract.email.split("@")[0],
            temporary_password=self.temporary_password
        )


# ── Database ─────────────────────────────────────────────────────────────────

@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ── Collaborators ────────────────────────────────────────────────────────────

@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def provisioner():
    return FakeProvisioner()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def documents():
    # Empty font path: built-in Helvetica
    return TicketDocumentService(font_path="", tz_name="Asia/Ho_Chi_Minh")


@pytest.fixture
def email_service(transport, documents):
    return EmailService(
        EmailDispatcher(transport, executor=SyncExecutor()),
        documents=documents,
        frontend_url="https://busify.test/",
        sender="Busify <no-reply@busify.test>",
        tz_name="Asia/Ho_Chi_Minh"
    )


@pytest.fixture
def contract_service(db, storage, provisioner, email_service):
    return ContractService(db, storage, provisioner=provisioner, notifier=email_service)


# ── Identities ───────────────────────────────────────────────────────────────

@pytest.fixture
def operator():
    return CallerIdentity(user_id=10, email="owner@phuongtrang.vn", roles=["operator"])


@pytest.fixture
def admin():
    return CallerIdentity(user_id=1, email="admin@busify.com", roles=["admin"])


def bearer(identity: CallerIdentity) -> dict:
    token = create_access_token({
        "sub": str(identity.user_id),
        "email": identity.email,
        "roles": identity.roles
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def operator_headers(operator):
    return bearer(operator)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


# ── Sample data ──────────────────────────────────────────────────────────────

@pytest.fixture
def make_request():
    def _make(**overrides):
        data = {
            "vat_code": "0312345678",
            "email": "owner@phuongtrang.vn",
            "phone": "0901234567",
            "address": "80 Tran Hung Dao, Q1, TP.HCM",
            "start_date": date(2025, 1, 1),
            "end_date": date(2026, 1, 1),
            "operation_area": "Ho Chi Minh - Da Lat",
        }
        data.update(overrides)
        return ContractRequest(**data)
    return _make


@pytest.fixture
def tickets():
    common = {
        "price": Decimal("250000"),
        "passenger_phone": "0901234567",
        "booking_code": "BK-20250110-7F3A",
        "departure_time": datetime(2025, 1, 10, 1, 30, tzinfo=timezone.utc),
        "estimated_arrival_time": datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc),
        "start_location": "Bến xe Miền Đông",
        "end_location": "Bến xe Đà Lạt",
        "license_plate": "51B-123.45",
    }
    return [
        TicketInfo(ticket_code="TK-0001", seat_number="A1", **common),
        TicketInfo(ticket_code="TK-0002", seat_number="A2", **common),
    ]


# ── HTTP ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def client(db, storage, email_service):
    from src.database import get_db
    from src.main import app
    from src.notifications.service import get_email_service
    from src.storage import get_file_storage

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_file_storage] = lambda: storage
    app.dependency_overrides[get_email_service] = lambda: email_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
