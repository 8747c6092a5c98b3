from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.security import utcnow
from app.db.base import Base
from app.models.company import new_id


class User(Base):
    __tablename__ = "usuarios"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # sempre minúsculo (login é case-insensitive)
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    whatsapp: Mapped[str | None] = mapped_column(String(11), nullable=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    temporary_password: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    company_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("empresas.id"), index=True, nullable=False
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    password_changed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
