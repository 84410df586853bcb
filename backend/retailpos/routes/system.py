# backend/retailpos/routes/system.py
"""
System health endpoint.

Reports database connectivity plus a few counts useful when debugging a
deployment.
"""

import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import ExchangeRate, Location, Product
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        location_count = db.session.query(Location).count()
        product_count = db.session.query(Product).count()
        rate_count = db.session.query(ExchangeRate).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "locations": location_count,
                "products": product_count,
                "exchange_rates": rate_count,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200
    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status
