import logging

from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.errors import ConflictError
from app.core.security import hash_password
from app.db.base import Base
from app.models import Company, User
from app.models.company import new_id
from app.services.stores import CompanyRegistry, CredentialStore, transaction
from app.services.validators import normalize_email, only_digits

logger = logging.getLogger(__name__)


def create_tables(engine) -> None:
    import app.models  # noqa: F401  (registra as tabelas no Base.metadata)

    Base.metadata.create_all(bind=engine, checkfirst=True)


def ensure_admin(db: Session, cfg: Settings = settings) -> None:
    """
    Seed da empresa + admin inicial, só se configurado e ainda não existir.
    O admin nasce com senha temporária: troca obrigatória no primeiro login.
    """
    email = normalize_email(cfg.DEFAULT_ADMIN_EMAIL)
    cnpj = only_digits(cfg.DEFAULT_COMPANY_CNPJ)
    if not (email and cnpj and cfg.DEFAULT_ADMIN_PASSWORD):
        return

    companies = CompanyRegistry(db)
    credentials = CredentialStore(db)

    try:
        with transaction(db):
            if companies.get_by_cnpj(cnpj) is not None or credentials.exists_by_email(email):
                return

            company = Company(id=new_id(), cnpj=cnpj, name=cfg.DEFAULT_COMPANY_NAME or cfg.APP_NAME)
            companies.put(company)
            credentials.put(
                User(
                    id=new_id(),
                    email=email,
                    full_name="Administrador",
                    password_hash=hash_password(cfg.DEFAULT_ADMIN_PASSWORD),
                    temporary_password=True,
                    company_id=company.id,
                    is_admin=True,
                )
            )
    except ConflictError:
        # outro worker criou no meio do caminho
        return

    logger.info("Empresa e admin iniciais criados (%s)", email)
