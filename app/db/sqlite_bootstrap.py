# app/db/sqlite_bootstrap.py
from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.engine import Engine


def _is_sqlite(engine: Engine) -> bool:
    try:
        return engine.dialect.name == "sqlite"
    except Exception:
        return False


def configure_sqlite(engine: Engine) -> None:
    """
    Ajustes de conexão para SQLite (dev/testes).
    - liga foreign keys (usuário nunca aponta para empresa inexistente)
    - toda transação abre com BEGIN IMMEDIATE: o SQLite serializa os writers
      e o check-and-set do token de reset / corrida de CNPJ fica atômico
    Só roda se o banco for SQLite.
    """
    if not _is_sqlite(engine):
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # desliga o BEGIN automático do pysqlite; quem emite é o evento abaixo
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
