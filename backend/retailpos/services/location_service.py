# Overview: Location (warehouse / store) reference data.

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import LOCATION_TYPES, Location


DEFAULT_LOCATIONS = (
    ("Almacén Principal", "WAREHOUSE"),
    ("Tienda Centro", "STORE"),
    ("Tienda Norte", "STORE"),
)


def _normalize_type(value) -> str:
    code = str(value or "").strip().upper()
    if code not in LOCATION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(LOCATION_TYPES)}")
    return code


def create_location(name: str, type: str = "STORE") -> Location:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name cannot be blank")
    location_type = _normalize_type(type)

    if db.session.query(Location).filter_by(name=name).first():
        raise ConflictError(f"Location {name!r} already exists")

    location = Location(name=name, type=location_type)
    db.session.add(location)
    db.session.commit()
    return location


def get_location(location_id: int) -> Location:
    location = db.session.get(Location, location_id)
    if location is None:
        raise NotFoundError(f"Location {location_id} not found")
    return location


def list_locations() -> list[Location]:
    return db.session.query(Location).order_by(Location.id.asc()).all()


def seed_default_locations() -> list[Location]:
    """Create the default warehouse and stores. Safe to call repeatedly."""
    for name, location_type in DEFAULT_LOCATIONS:
        if db.session.query(Location).filter_by(name=name).first() is None:
            db.session.add(Location(name=name, type=location_type))
    db.session.commit()
    return list_locations()
