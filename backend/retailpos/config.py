# backend/retailpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/retailpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///retailpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shared secret for privileged writes (X-Admin-Secret header).
    # Privileged endpoints answer 503 while this is unset.
    ADMIN_SECRET = os.environ.get("ADMIN_SECRET")

    # Legacy single-currency prices are stored in BASE_CURRENCY
    BASE_CURRENCY = os.environ.get("BASE_CURRENCY", "CUP").upper()
    SUPPORTED_CURRENCIES = ("CUP", "USD")

    # Product image bucket (objects addressed {product_id}/{file_name})
    IMAGE_STORAGE_ROOT = os.environ.get("IMAGE_STORAGE_ROOT", "instance/product-images")
    IMAGE_PUBLIC_BASE_URL = os.environ.get("IMAGE_PUBLIC_BASE_URL", "/product-images")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
    DASHBOARD_WINDOW_DAYS = int(os.environ.get("DASHBOARD_WINDOW_DAYS", "7"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Browser origins allowed to call the API (POS frontend dev servers)
    CORS_ALLOWED_ORIGINS = (
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    )

    # Product description generation (Gemini generateContent API)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_API_URL = os.environ.get("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")
    DESCRIPTION_TIMEOUT_SECONDS = float(os.environ.get("DESCRIPTION_TIMEOUT_SECONDS", "15"))
