# backend/backoffice/config.py
from __future__ import annotations
import os


def engine_options_for(database_uri: str, timeout_seconds: float) -> dict:
    """
    Engine options that bound how long a statement may wait on locks.

    SQLite: busy timeout on the connection.
    PostgreSQL: server-side statement_timeout plus a bounded pool checkout.
    """
    if database_uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_seconds}}

    options = {
        "pool_pre_ping": True,
        "pool_timeout": timeout_seconds,
    }
    if database_uri.startswith("postgresql"):
        options["connect_args"] = {
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}"
        }
    return options


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///backoffice.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    DB_STATEMENT_TIMEOUT_SECONDS = float(os.environ.get("DB_STATEMENT_TIMEOUT_SECONDS", "5"))

    # Audit attribution when no acting admin is known
    DEFAULT_ACTOR = "System"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
