# app/routers/api_auth.py
from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.errors import NotAuthorized, NotFound
from app.core.security import SCOPE_PASSWORD_ROTATION, SCOPE_SESSION, decode_token
from app.db.session import get_db
from app.schemas.auth import (
    ChangePasswordIn,
    LoginIn,
    LoginOut,
    MeOut,
    RegisterIn,
    RegisterOut,
    ResetConsumeIn,
    ResetRequestIn,
    ResetRequestOut,
    ResultOut,
)
from app.services.auth_service import (
    AuthService,
    Authenticated,
    PasswordRotationRequired,
    Rejected,
)
from app.services.notifications import Notifier, build_notifier
from app.services.reset_tokens import ResetTokenIssuer

router = APIRouter(tags=["Auth"])

security = HTTPBearer(auto_error=False)


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier()


def get_auth_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(db, notifier=notifier)


def get_reset_issuer(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> ResetTokenIssuer:
    return ResetTokenIssuer(db, notifier=notifier)


# ============================================================
# Helpers (Bearer)
# ============================================================
def _token_payload(creds: HTTPAuthorizationCredentials | None, scopes: set[str]) -> dict:
    if creds is None or not creds.credentials:
        raise NotAuthorized()
    payload = decode_token(creds.credentials)
    if payload.get("scope") not in scopes or not payload.get("sub"):
        raise NotAuthorized("Token inválido para esta operação.")
    return payload


def get_session_payload(creds: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    return _token_payload(creds, {SCOPE_SESSION})


def get_rotation_or_session_payload(creds: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    return _token_payload(creds, {SCOPE_SESSION, SCOPE_PASSWORD_ROTATION})


# ============================================================
# LOGIN
# ============================================================
@router.post("/login", response_model=LoginOut, response_model_exclude_none=True)
def login(data: LoginIn, service: AuthService = Depends(get_auth_service)):
    result = service.login(data.email, data.password)

    if isinstance(result, Authenticated):
        return LoginOut(
            status=result.status,
            user_id=result.user_id,
            access_token=result.access_token,
            token_type="bearer",
        )
    if isinstance(result, PasswordRotationRequired):
        return LoginOut(
            status=result.status,
            user_id=result.user_id,
            rotation_token=result.rotation_token,
        )
    if isinstance(result, Rejected):
        body = LoginOut(status=result.status, reason=result.reason)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )
    raise TypeError(f"Resultado de login desconhecido: {result!r}")


# ============================================================
# CHANGE PASSWORD (senha temporária ou usuário logado)
# ============================================================
@router.post("/password/change", response_model=ResultOut, response_model_exclude_none=True)
def change_password(
    data: ChangePasswordIn,
    payload: dict = Depends(get_rotation_or_session_payload),
    service: AuthService = Depends(get_auth_service),
):
    if payload["sub"] != data.user_id:
        raise NotAuthorized("Token não pertence a este usuário.")

    service.change_password(data.user_id, data.new_password)
    return ResultOut(success=True, message="Senha alterada com sucesso.")


# ============================================================
# REGISTER
# ============================================================
@router.post(
    "/register",
    response_model=RegisterOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def register(data: RegisterIn, service: AuthService = Depends(get_auth_service)):
    user, company = service.register(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        company_name=data.company_name,
        cnpj=data.cnpj,
        whatsapp=data.whatsapp,
    )
    return RegisterOut(
        user_id=user.id,
        company_id=company.id,
        message="Sua conta foi criada. Faça login para continuar.",
    )


# ============================================================
# RESET FLOW
# ============================================================
@router.post(
    "/password/reset/request",
    response_model=ResetRequestOut,
    status_code=status.HTTP_202_ACCEPTED,
)
def reset_request(data: ResetRequestIn, issuer: ResetTokenIssuer = Depends(get_reset_issuer)):
    issuer.issue(data.email)
    return ResetRequestOut(accepted=True)


@router.post("/password/reset/consume", response_model=ResultOut, response_model_exclude_none=True)
def reset_consume(data: ResetConsumeIn, issuer: ResetTokenIssuer = Depends(get_reset_issuer)):
    issuer.consume(data.token, data.new_password)
    return ResultOut(success=True, message="Senha redefinida com sucesso.")


# ============================================================
# ME / ADMIN
# ============================================================
@router.get("/me", response_model=MeOut)
def me(
    payload: dict = Depends(get_session_payload),
    service: AuthService = Depends(get_auth_service),
):
    user = service.get_user(payload["sub"])
    return MeOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        whatsapp=user.whatsapp,
        company_id=user.company_id,
        is_admin=user.is_admin,
        temporary_password=user.temporary_password,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


@router.post("/users/{user_id}/temporary-password", response_model=dict)
def issue_temporary_password(
    user_id: str,
    payload: dict = Depends(get_session_payload),
    service: AuthService = Depends(get_auth_service),
):
    # inexistente ou de outra empresa: mesma resposta, não revela ids válidos
    denied = NotAuthorized("Sem permissão para emitir senha temporária a este usuário.")
    if not payload.get("is_admin"):
        raise denied

    try:
        target = service.get_user(user_id)
    except NotFound:
        raise denied
    if target.company_id != payload.get("company_id"):
        raise denied

    temp = service.issue_temporary_password(user_id)
    return {"success": True, "temporaryPassword": temp}
