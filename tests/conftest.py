"""
Pytest fixtures for the auth service tests
"""

import os

# antes de importar o app: bcrypt barato e nenhum arquivo de banco real
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from app.db.init_db import create_tables
from app.db.session import get_db
from app.db.sqlite_bootstrap import configure_sqlite
from app.routers.api_auth import get_notifier
from app.services.auth_service import AuthService
from app.services.reset_tokens import ResetTokenIssuer


class RecordingNotifier:
    """Guarda o que seria enviado por e-mail"""

    def __init__(self):
        self.resets = []
        self.temporary = []
        self.fail = False

    def send_password_reset(self, email, name, token):
        if self.fail:
            raise RuntimeError("smtp down")
        self.resets.append({"email": email, "name": name, "token": token})

    def send_temporary_password(self, email, name, password):
        if self.fail:
            raise RuntimeError("smtp down")
        self.temporary.append({"email": email, "name": name, "password": password})


@pytest.fixture
def engine(tmp_path):
    """SQLite em arquivo por teste (permite várias conexões/threads)"""
    eng = create_engine(
        f"sqlite:///{tmp_path / 'auth.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        future=True,
    )
    configure_sqlite(eng)
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def auth(db, notifier):
    return AuthService(db, notifier=notifier)


@pytest.fixture
def issuer(db, notifier):
    return ResetTokenIssuer(db, notifier=notifier)


@pytest.fixture
def count_rows(session_factory):
    """Conta linhas de uma tabela numa sessão nova (inspeção do store)"""

    def _count(model):
        with session_factory() as session:
            return session.execute(select(func.count()).select_from(model)).scalar_one()

    return _count


@pytest.fixture
def fetch(session_factory):
    """Busca um registro numa sessão nova (sem cache do identity map)"""

    def _fetch(model, key):
        with session_factory() as session:
            return session.get(model, key)

    return _fetch


@pytest.fixture
def client(session_factory, notifier):
    """Create test client with the database and notifier overridden"""
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def registration():
    return {
        "fullName": "Ana Souza",
        "email": "a@x.com",
        "password": "segredo1",
        "whatsapp": "(11) 91234-5678",
        "companyName": "Empresa X",
        "cnpj": "11.111.111/0001-11",
    }
