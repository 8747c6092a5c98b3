from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",  # importante: remove BOM no Windows
        case_sensitive=False,
        extra="ignore",
    )

    # =========================
    # App
    # =========================
    APP_NAME: str = "VIGIA"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    # Lista separada por vírgula, "*" ou vazio (defaults locais)
    CORS_ORIGINS: str = ""

    # =========================
    # Auth / Tokens
    # =========================
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440
    # token curto devolvido junto com PasswordRotationRequired
    ROTATION_TOKEN_EXPIRE_MINUTES: int = 15
    BCRYPT_ROUNDS: int = 12

    # =========================
    # Política de senha
    # =========================
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_REQUIRE_LETTER_AND_DIGIT: bool = False

    # =========================
    # Reset de senha
    # =========================
    RESET_TOKEN_EXPIRE_MINUTES: int = 30
    # tokens vencidos/consumidos ficam no banco por esse tempo antes do purge
    RESET_TOKEN_RETENTION_HOURS: int = 24

    # =========================
    # Cadastro
    # =========================
    CNPJ_VERIFY_CHECK_DIGITS: bool = False

    # =========================
    # Database
    # =========================
    DATABASE_URL: str = Field(default="sqlite:///./vigia.db")
    AUTO_CREATE_TABLES: bool = False

    # =========================
    # E-mail (notificações)
    # =========================
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = ""
    MAIL_FROM_NAME: str = "VIGIA"
    FRONTEND_URL: str = "http://localhost:3000"

    # =========================
    # Seed (empresa + admin inicial)
    # =========================
    DEFAULT_ADMIN_EMAIL: str = ""
    DEFAULT_ADMIN_PASSWORD: str = ""
    DEFAULT_COMPANY_NAME: str = ""
    DEFAULT_COMPANY_CNPJ: str = ""


settings = Settings()


def get_database_url() -> str:
    url = (settings.DATABASE_URL or "").strip()

    # Compat Render/Heroku antigos
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    # Força psycopg (SQLAlchemy 2.x)
    if url.startswith("postgresql://") and "+psycopg" not in url:
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)

    return url


def smtp_configured(cfg: Settings = settings) -> bool:
    return bool((cfg.SMTP_HOST or "").strip() and (cfg.MAIL_FROM or cfg.SMTP_USER))
