import hashlib
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.errors import NotAuthorized

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__default_rounds=settings.BCRYPT_ROUNDS,
)

# bcrypt limita o segredo a 72 bytes
_BCRYPT_MAX_BYTES = 72

SCOPE_SESSION = "session"
SCOPE_PASSWORD_ROTATION = "password_rotation"


def utcnow() -> datetime:
    """UTC sem tzinfo (o SQLite descarta o fuso ao gravar)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def password_too_long(password: str) -> bool:
    return len((password or "").encode("utf-8")) > _BCRYPT_MAX_BYTES


def hash_password(password: str) -> str:
    if password_too_long(password):
        raise ValueError("Senha muito longa para bcrypt (máx. 72 bytes).")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Evita crash do passlib/bcrypt quando a senha excede 72 bytes
    if password_too_long(plain_password) or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # hash corrompido / formato desconhecido
        return False


def dummy_verify() -> None:
    """Gasta o mesmo tempo de um verify real (login com e-mail inexistente)."""
    pwd_context.dummy_verify()


def create_access_token(
    subject: str,
    scope: str = SCOPE_SESSION,
    expires_minutes: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = (
            settings.ROTATION_TOKEN_EXPIRE_MINUTES
            if scope == SCOPE_PASSWORD_ROTATION
            else settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": subject,
        "scope": scope,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }

    if extra:
        payload.update(extra)

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise NotAuthorized("Token inválido ou expirado.")


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """Só o digest do token de reset vai para o banco."""
    return hashlib.sha256((token or "").encode("utf-8")).hexdigest()


def generate_temporary_password(length: int = 12) -> str:
    alphabet = string.ascii_letters + string.digits
    while True:
        pw = "".join(secrets.choice(alphabet) for _ in range(length))
        # letra + número: passa também na política estrita
        if any(c.isalpha() for c in pw) and any(c.isdigit() for c in pw):
            return pw
