import itertools
import os
import tempfile
from datetime import datetime

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_rentora.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"
os.environ["OTP_EXPIRE_MINUTES"] = "5"
os.environ["OTP_MAX_ATTEMPTS"] = "3"
os.environ["CONTRACT_MIN_TERM_DAYS"] = "30"
os.environ["TERMINATION_REQUEST_EXPIRE_DAYS"] = "7"
os.environ["SMTP_HOST"] = ""

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from app.main import app
from app.core.clock import FixedClock
from app.core.security import create_access_token, get_password_hash
from app.db.models.user import User as UserModel
from app.db.models.role import Role as RoleModel

API = "/api/v1"
START_OF_TESTS = datetime(2025, 1, 10, 9, 0, 0)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
        poolclass=None,  # Don't use connection pooling for SQLite
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()

        try:
            if os.path.exists(test_db_path):
                os.remove(test_db_path)
            for suffix in ["-wal", "-shm"]:
                wal_path = f"{test_db_path}{suffix}"
                if os.path.exists(wal_path):
                    os.remove(wal_path)
            if os.path.exists(temp_db_dir):
                os.rmdir(temp_db_dir)
        except OSError as e:
            print(f"Cleanup failed: {e}")


@pytest.fixture(scope="function")
def clock() -> FixedClock:
    """Frozen time source shared by the API and the tests."""
    return FixedClock(START_OF_TESTS)


@pytest.fixture(scope="function")
def client(db_session, clock):
    """Create a test client with database and clock dependency overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from app.api.deps import get_clock, get_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def issued_otps(monkeypatch) -> list[str]:
    """Make OTP generation predictable and record every code handed out."""
    issued = []
    codes = itertools.count(100000)

    def fake_generate_otp_code() -> str:
        code = str(next(codes))
        issued.append(code)
        return code

    monkeypatch.setattr("app.services.otp.generate_otp_code", fake_generate_otp_code)
    return issued


def _create_user(db: Session, role_name: str, email: str, password: str, display_name: str) -> dict:
    role = db.query(RoleModel).filter(RoleModel.name == role_name).first()
    if not role:
        raise RuntimeError(f"{role_name} role not found")

    user = UserModel(
        email=email,
        display_name=display_name,
        password_hash=get_password_hash(password),
        role_id=role.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {
        "id": user.id,
        "email": user.email,
        "display_name": display_name,
        "password": password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin user seeded by migration 002."""
    from app.repositories.user import get_user_by_email
    from app.core.config import settings

    user = get_user_by_email(db, settings.first_admin_email)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 002.")

    return {
        "id": user.id,
        "email": user.email,
        "password": settings.first_admin_password,  # Plaintext password from env
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_token(admin_user: dict) -> str:
    return create_access_token(data={"sub": admin_user["id"]})


@pytest.fixture(scope="function")
def landlord_user_dict(db: Session) -> dict:
    return _create_user(db, "landlord", "landlord@example.com", "LandlordPass123!", "Test Landlord")


@pytest.fixture(scope="function")
def landlord_token(landlord_user_dict: dict) -> str:
    return create_access_token(data={"sub": landlord_user_dict["id"]})


@pytest.fixture(scope="function")
def tenant_user_dict(db: Session) -> dict:
    return _create_user(db, "tenant", "tenant@example.com", "TenantPass123!", "Test Tenant")


@pytest.fixture(scope="function")
def tenant_token(tenant_user_dict: dict) -> str:
    return create_access_token(data={"sub": tenant_user_dict["id"]})


@pytest.fixture(scope="function")
def other_tenant_user_dict(db: Session) -> dict:
    return _create_user(db, "tenant", "tenant2@example.com", "Tenant2Pass123!", "Other Tenant")


@pytest.fixture(scope="function")
def other_tenant_token(other_tenant_user_dict: dict) -> str:
    return create_access_token(data={"sub": other_tenant_user_dict["id"]})


@pytest.fixture(scope="function")
def unit(db: Session, landlord_user_dict: dict):
    """A unit owned by the landlord."""
    from app.repositories.unit import create_unit

    return create_unit(
        db,
        landlord_id=landlord_user_dict["id"],
        code="A-101",
        property_name="Riverside Residence",
        address_line="1 River Road",
    )


class ContractFlow:
    """Drives a contract through the API the way the parties would."""

    def __init__(self, client, issued_otps, landlord_token, tenant_token, tenant_email, unit_id):
        self.client = client
        self.issued_otps = issued_otps
        self.tokens = {"LANDLORD": landlord_token, "TENANT": tenant_token}
        self.tenant_email = tenant_email
        self.unit_id = unit_id

    def draft_payload(self, **overrides) -> dict:
        payload = {
            "unit_id": self.unit_id,
            "tenant_email": self.tenant_email,
            "start_date": "2025-02-01",
            "end_date": "2026-01-31",
            "deposit_amount": "1500.00",
            "fee_detail": "Rent 1000.00 per month, due on the 5th",
            "template_code": "RESIDENTIAL_V1",
            "content": "The landlord lets unit A-101 to the tenant.",
        }
        payload.update(overrides)
        return payload

    def create_draft(self, **overrides) -> dict:
        response = self.client.post(
            f"{API}/contracts",
            json=self.draft_payload(**overrides),
            headers=auth(self.tokens["LANDLORD"]),
        )
        assert response.status_code == 201, response.text
        return response.json()

    def send(self, contract_id: int) -> dict:
        response = self.client.post(
            f"{API}/contracts/{contract_id}/send", headers=auth(self.tokens["LANDLORD"])
        )
        assert response.status_code == 200, response.text
        return response.json()

    def detail(self, contract_id: int, role: str = "LANDLORD") -> dict:
        response = self.client.get(
            f"{API}/contracts/{contract_id}", headers=auth(self.tokens[role])
        )
        assert response.status_code == 200, response.text
        return response.json()

    def party_id(self, contract_id: int, role: str) -> int:
        parties = self.detail(contract_id)["parties"]
        return next(p["id"] for p in parties if p["role"] == role)

    def request_otp(self, contract_id: int, role: str):
        return self.client.post(
            f"{API}/contracts/{contract_id}/otp",
            json={"party_id": self.party_id(contract_id, role)},
            headers=auth(self.tokens[role]),
        )

    def sign(self, contract_id: int, role: str, otp: str | None = None):
        return self.client.post(
            f"{API}/contracts/{contract_id}/sign",
            json={
                "party_id": self.party_id(contract_id, role),
                "otp": otp if otp is not None else self.issued_otps[-1],
                "role": role,
            },
            headers=auth(self.tokens[role]),
        )

    def sign_as(self, contract_id: int, role: str) -> dict:
        assert self.request_otp(contract_id, role).status_code == 200
        response = self.sign(contract_id, role)
        assert response.status_code == 200, response.text
        return response.json()

    def sent_contract(self, **overrides) -> int:
        contract_id = self.create_draft(**overrides)["id"]
        self.send(contract_id)
        return contract_id

    def signed_contract(self, **overrides) -> int:
        contract_id = self.sent_contract(**overrides)
        self.sign_as(contract_id, "LANDLORD")
        self.sign_as(contract_id, "TENANT")
        return contract_id

    def request_termination(self, contract_id: int, role: str, type_: str, reason: str | None = None):
        return self.client.post(
            f"{API}/contracts/{contract_id}/termination",
            json={"type": type_, "reason": reason},
            headers=auth(self.tokens[role]),
        )

    def consent(self, contract_id: int, request_id: int, role: str):
        party_id = self.party_id(contract_id, role)
        otp_response = self.client.post(
            f"{API}/contracts/{contract_id}/termination/{request_id}/otp",
            json={"party_id": party_id},
            headers=auth(self.tokens[role]),
        )
        assert otp_response.status_code == 200, otp_response.text
        return self.client.post(
            f"{API}/contracts/{contract_id}/termination/{request_id}/consent",
            json={"party_id": party_id, "otp": self.issued_otps[-1]},
            headers=auth(self.tokens[role]),
        )


@pytest.fixture(scope="function")
def flow(client, issued_otps, landlord_token, tenant_token, tenant_user_dict, unit) -> ContractFlow:
    return ContractFlow(
        client,
        issued_otps,
        landlord_token=landlord_token,
        tenant_token=tenant_token,
        tenant_email=tenant_user_dict["email"],
        unit_id=unit.id,
    )
