"""
Stores de credenciais e de empresas sobre uma Session do SQLAlchemy.

Os stores fazem ``flush`` mas nunca ``commit``: quem abre e fecha a
transação é o AuthService / ResetTokenIssuer. Assim empresa + admin do
cadastro entram (ou não) juntos.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, StoreUnavailable
from app.models import Company, User
from app.models.company import new_id
from app.services.validators import normalize_email, only_digits

logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(db: Session) -> Iterator[None]:
    """Converte erros do driver nos erros do domínio, desfazendo a transação."""
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        raise ConflictError() from e
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        logger.error("Banco indisponível: %s", e.__class__.__name__)
        raise StoreUnavailable() from e


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        if not email:
            return None
        with translate_store_errors(self.db):
            return self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def get_by_id(self, user_id: str, lock: bool = False) -> Optional[User]:
        if not user_id:
            return None
        stmt = select(User).where(User.id == user_id)
        if lock:
            # linha travada até o fim da transação (no-op no SQLite)
            stmt = stmt.with_for_update()
        with translate_store_errors(self.db):
            return self.db.execute(stmt).scalar_one_or_none()

    def exists_by_email(self, email: str) -> bool:
        email = normalize_email(email)
        with translate_store_errors(self.db):
            found = self.db.execute(select(User.id).where(User.email == email)).first()
        return found is not None

    def put(self, user: User) -> None:
        """Upsert por id. Falha com ConflictError se o e-mail for de outro usuário."""
        user.email = normalize_email(user.email)
        if not user.id:
            user.id = new_id()

        with translate_store_errors(self.db):
            owner = self.db.execute(
                select(User.id).where(User.email == user.email)
            ).scalar_one_or_none()
            if owner is not None and owner != user.id:
                raise ConflictError("E-mail já pertence a outro usuário.")

            self.db.add(user)
            self.db.flush()

    def count(self) -> int:
        with translate_store_errors(self.db):
            return self.db.execute(select(func.count()).select_from(User)).scalar_one()


class CompanyRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get_by_cnpj(self, cnpj: str) -> Optional[Company]:
        digits = only_digits(cnpj)
        if not digits:
            return None
        with translate_store_errors(self.db):
            return self.db.execute(
                select(Company).where(Company.cnpj == digits)
            ).scalar_one_or_none()

    def get_by_id(self, company_id: str) -> Optional[Company]:
        if not company_id:
            return None
        with translate_store_errors(self.db):
            return self.db.get(Company, company_id)

    def put(self, company: Company) -> None:
        """Upsert por id. Falha com ConflictError se o CNPJ for de outra empresa."""
        company.cnpj = only_digits(company.cnpj)
        if not company.id:
            company.id = new_id()

        with translate_store_errors(self.db):
            owner = self.db.execute(
                select(Company.id).where(Company.cnpj == company.cnpj)
            ).scalar_one_or_none()
            if owner is not None and owner != company.id:
                raise ConflictError("CNPJ já pertence a outra empresa.")

            self.db.add(company)
            self.db.flush()

    def count(self) -> int:
        with translate_store_errors(self.db):
            return self.db.execute(select(func.count()).select_from(Company)).scalar_one()


@contextmanager
def transaction(db: Session) -> Iterator[None]:
    """
    Unidade de trabalho: commit no fim do bloco, rollback em qualquer erro.
    Tudo que os stores gravaram dentro do bloco entra junto ou nada entra.
    """
    try:
        yield
        with translate_store_errors(db):
            db.commit()
    except Exception:
        db.rollback()
        raise
