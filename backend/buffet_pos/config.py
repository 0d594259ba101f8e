# backend/buffet_pos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/buffet_pos.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///buffet_pos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # One loyalty point per 10.00 of sale total
    LOYALTY_POINT_VALUE_CENTS = int(os.environ.get("LOYALTY_POINT_VALUE_CENTS", "1000"))

    # Receipt defaults, overridden by the store_name / paper_size settings rows
    DEFAULT_STORE_NAME = os.environ.get("DEFAULT_STORE_NAME", "Buffet Restaurant")
    DEFAULT_PAPER_SIZE = os.environ.get("DEFAULT_PAPER_SIZE", "88mm")

    # Callable taking a receipt dict; None disables printing
    RECEIPT_PRINTER = None

    SALES_LIST_DEFAULT_LIMIT = 100

    # bcrypt cost factor; tests drop this to 4
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
