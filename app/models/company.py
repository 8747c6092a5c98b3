import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.security import utcnow
from app.db.base import Base


def new_id() -> str:
    return uuid.uuid4().hex


class Company(Base):
    __tablename__ = "empresas"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # só os 14 dígitos
    cnpj: Mapped[str] = mapped_column(String(14), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
