# backend/market/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/market.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///market.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Single implicit buyer; deals and /account act on this account id
    MARKET_ACCOUNT_ID = int(os.environ.get("MARKET_ACCOUNT_ID", "1"))

    # Seed JSON applied by `flask seed startup`; empty keeps persisted data
    MARKET_SEED_FILE = os.environ.get("MARKET_SEED_FILE") or None

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
