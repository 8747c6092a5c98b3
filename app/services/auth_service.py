"""
Login, cadastro (empresa + admin) e troca de senha.

O resultado do login é uma união de tipos (Authenticated,
PasswordRotationRequired, Rejected); quem chama trata cada caso pelo tipo.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Tuple, Union

from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.errors import (
    DuplicateCNPJ,
    DuplicateEmail,
    InvalidCNPJ,
    InvalidCredentials,
    InvalidEmail,
    InvalidPhone,
    NotFound,
    WeakPassword,
)
from app.core.security import (
    SCOPE_PASSWORD_ROTATION,
    SCOPE_SESSION,
    create_access_token,
    dummy_verify,
    generate_temporary_password,
    hash_password,
    utcnow,
    verify_password,
)
from app.models import Company, User
from app.models.company import new_id
from app.services.notifications import LogNotifier, Notifier
from app.services.stores import CompanyRegistry, CredentialStore, transaction
from app.services.validators import (
    check_password_policy,
    is_valid_email,
    normalize_email,
    normalize_name,
    normalize_phone_br,
    only_digits,
    validate_cnpj,
    validate_phone_br,
)

logger = logging.getLogger(__name__)


# ============================================================
# Resultado do login
# ============================================================
@dataclass(frozen=True)
class Authenticated:
    user_id: str
    access_token: str
    status: Literal["Authenticated"] = "Authenticated"


@dataclass(frozen=True)
class PasswordRotationRequired:
    user_id: str
    # só serve para /password/change; não dá acesso ao resto da API
    rotation_token: str
    status: Literal["PasswordRotationRequired"] = "PasswordRotationRequired"


@dataclass(frozen=True)
class Rejected:
    reason: str = InvalidCredentials().code
    status: Literal["Rejected"] = "Rejected"


LoginResult = Union[Authenticated, PasswordRotationRequired, Rejected]


# ============================================================
# Emissão de sessão
# ============================================================
class SessionIssuer(Protocol):
    def issue(self, user: User) -> str: ...

    def issue_rotation(self, user: User) -> str: ...


class JwtSessionIssuer:
    def issue(self, user: User) -> str:
        return create_access_token(
            subject=user.id,
            scope=SCOPE_SESSION,
            extra={"company_id": user.company_id, "is_admin": user.is_admin},
        )

    def issue_rotation(self, user: User) -> str:
        return create_access_token(subject=user.id, scope=SCOPE_PASSWORD_ROTATION)


def check_password(password: str, cfg: Settings = settings) -> None:
    if not check_password_policy(
        password,
        min_length=cfg.PASSWORD_MIN_LENGTH,
        require_letter_and_digit=cfg.PASSWORD_REQUIRE_LETTER_AND_DIGIT,
    ):
        msg = f"A senha deve ter pelo menos {cfg.PASSWORD_MIN_LENGTH} caracteres"
        if cfg.PASSWORD_REQUIRE_LETTER_AND_DIGIT:
            msg += ", com letras e números"
        raise WeakPassword(msg + " (máx. 72 bytes).")


def notify_safely(send, *args) -> None:
    """Entrega fire-and-forget: falha de envio é logada, nunca propagada."""
    try:
        send(*args)
    except Exception as e:
        logger.warning("Falha ao enviar notificação (%s): %s", getattr(send, "__name__", send), e)


class AuthService:
    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        session_issuer: Optional[SessionIssuer] = None,
        cfg: Settings = settings,
    ):
        self.db = db
        self.cfg = cfg
        self.notifier = notifier or LogNotifier()
        self.sessions = session_issuer or JwtSessionIssuer()
        self.credentials = CredentialStore(db)
        self.companies = CompanyRegistry(db)

    # ------------------------------------------------------------
    # LOGIN
    # ------------------------------------------------------------
    def login(self, email: str, password: str) -> LoginResult:
        with transaction(self.db):
            user = self.credentials.get(email)

            if user is None:
                # mesmo custo de um verify real: não dá pra medir se o e-mail existe
                dummy_verify()
                logger.info("Login rejeitado (credenciais inválidas)")
                return Rejected()

            if not verify_password(password, user.password_hash):
                logger.info("Login rejeitado (credenciais inválidas)")
                return Rejected()

            if user.temporary_password:
                logger.info("Login com senha temporária: usuário %s precisa trocar a senha", user.id)
                return PasswordRotationRequired(
                    user_id=user.id,
                    rotation_token=self.sessions.issue_rotation(user),
                )

            user.last_login_at = utcnow()

        return Authenticated(user_id=user.id, access_token=self.sessions.issue(user))

    # ------------------------------------------------------------
    # CHANGE PASSWORD
    # ------------------------------------------------------------
    def change_password(self, user_id: str, new_password: str) -> None:
        check_password(new_password, self.cfg)
        pw_hash = hash_password(new_password)

        with transaction(self.db):
            user = self.credentials.get_by_id(user_id, lock=True)
            if user is None:
                raise NotFound()

            user.password_hash = pw_hash
            user.temporary_password = False
            user.password_changed_at = utcnow()
            self.credentials.put(user)

        logger.info("Senha alterada para o usuário %s", user_id)

    # ------------------------------------------------------------
    # REGISTER
    # ------------------------------------------------------------
    def register(
        self,
        full_name: str,
        email: str,
        password: str,
        company_name: str,
        cnpj: str,
        whatsapp: Optional[str] = None,
    ) -> Tuple[User, Company]:
        """
        Cria empresa + primeiro usuário (admin) numa única transação.

        Confirmação de senha é responsabilidade de quem chama; aqui só chega
        a senha final.
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidEmail()
        if not validate_cnpj(cnpj, verify_check_digits=self.cfg.CNPJ_VERIFY_CHECK_DIGITS):
            raise InvalidCNPJ()
        if (whatsapp or "").strip() and not validate_phone_br(whatsapp):
            raise InvalidPhone()
        check_password(password, self.cfg)

        pw_hash = hash_password(password)
        cnpj_digits = only_digits(cnpj)

        with transaction(self.db):
            if self.companies.get_by_cnpj(cnpj_digits) is not None:
                raise DuplicateCNPJ()
            if self.credentials.exists_by_email(email):
                raise DuplicateEmail()

            company = Company(id=new_id(), cnpj=cnpj_digits, name=normalize_name(company_name))
            self.companies.put(company)

            user = User(
                id=new_id(),
                email=email,
                full_name=normalize_name(full_name),
                whatsapp=normalize_phone_br(whatsapp) or None,
                password_hash=pw_hash,
                temporary_password=False,
                company_id=company.id,
                is_admin=True,
            )
            self.credentials.put(user)

        logger.info("Empresa %s cadastrada com admin %s", company.id, user.id)
        return user, company

    # ------------------------------------------------------------
    # SENHA TEMPORÁRIA (fluxo do admin)
    # ------------------------------------------------------------
    def issue_temporary_password(self, user_id: str) -> str:
        """Gera senha temporária, força troca no próximo login e avisa o usuário."""
        temp = generate_temporary_password(max(12, self.cfg.PASSWORD_MIN_LENGTH))
        pw_hash = hash_password(temp)

        with transaction(self.db):
            user = self.credentials.get_by_id(user_id, lock=True)
            if user is None:
                raise NotFound()

            user.password_hash = pw_hash
            user.temporary_password = True
            user.password_changed_at = utcnow()
            self.credentials.put(user)

        logger.info("Senha temporária emitida para o usuário %s", user_id)
        notify_safely(self.notifier.send_temporary_password, user.email, user.full_name, temp)
        return temp

    def get_user(self, user_id: str) -> User:
        with transaction(self.db):
            user = self.credentials.get_by_id(user_id)
        if user is None:
            raise NotFound()
        return user
