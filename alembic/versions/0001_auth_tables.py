"""empresas, usuarios e tokens de reset

Revision ID: 0001_auth_tables
Revises:
Create Date: 2026-10-18 00:00:00
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_auth_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "empresas",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("cnpj", sa.String(14), nullable=False),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_empresas_cnpj", "empresas", ["cnpj"], unique=True)

    op.create_table(
        "usuarios",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("email", sa.String(200), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("whatsapp", sa.String(11), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("temporary_password", sa.Boolean(), nullable=False),
        sa.Column("company_id", sa.String(32), sa.ForeignKey("empresas.id"), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("password_changed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_usuarios_email", "usuarios", ["email"], unique=True)
    op.create_index("ix_usuarios_company_id", "usuarios", ["company_id"])

    op.create_table(
        "tokens_reset_senha",
        sa.Column("token", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(32), sa.ForeignKey("usuarios.id"), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("consumed", sa.Boolean(), nullable=False),
        sa.Column("consumed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_tokens_reset_senha_user_id", "tokens_reset_senha", ["user_id"])
    op.create_index("ix_tokens_reset_senha_expires_at", "tokens_reset_senha", ["expires_at"])


def downgrade() -> None:
    op.drop_table("tokens_reset_senha")
    op.drop_table("usuarios")
    op.drop_table("empresas")
