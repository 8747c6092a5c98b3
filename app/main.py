# app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import AuthError, StoreUnavailable
from app.core.logging import setup_logging
from app.db.init_db import create_tables, ensure_admin
from app.db.session import SessionLocal, engine

from app.routers.api_auth import router as api_auth_router

logger = logging.getLogger(__name__)


def _parse_cors_origins(value) -> list[str]:
    """
    Aceita:
      - "*" (libera geral, mas sem credenciais)
      - lista separada por vírgula: "https://site.com,http://localhost:3000"
      - vazio -> defaults locais
    """
    v = (value or "").strip()
    if not v:
        return [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ]
    if v == "*":
        return ["*"]
    return [x.strip() for x in v.split(",") if x.strip()]


cors_origins = _parse_cors_origins(settings.CORS_ORIGINS)

app = FastAPI(title=settings.APP_NAME)

# =========================
# CORS
# =========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================
# Erros de domínio -> JSON
# =========================
@app.exception_handler(AuthError)
def handle_auth_error(request: Request, exc: AuthError):
    if exc.status_code >= 500:
        logger.error("%s em %s %s", exc.code, request.method, request.url.path)
    headers = {"Retry-After": "1"} if isinstance(exc, StoreUnavailable) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


# =========================
# Routers
# =========================
app.include_router(api_auth_router)


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME, "env": settings.ENV}


@app.on_event("startup")
def on_startup():
    setup_logging(settings.LOG_LEVEL)

    # ⚠️ NÃO rode create_all em produção (use alembic).
    # Em DEV: export AUTO_CREATE_TABLES=1
    if settings.AUTO_CREATE_TABLES:
        create_tables(engine)

    # Seed da empresa/admin (se configurado e não existir)
    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()
