from flask import Blueprint, request

from ..decorators import require_admin_secret
from ..services import location_service

locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


@locations_bp.get("")
def list_locations():
    locations = location_service.list_locations()
    return {"items": [loc.to_dict() for loc in locations], "count": len(locations)}


@locations_bp.get("/<int:location_id>")
def get_location(location_id: int):
    return location_service.get_location(location_id).to_dict()


@locations_bp.post("")
@require_admin_secret
def create_location():
    """
    Request body:
    {
        "name": str,
        "type": "WAREHOUSE" | "STORE" (default STORE)
    }
    """
    data = request.get_json(silent=True) or {}
    location = location_service.create_location(data.get("name"), data.get("type") or "STORE")
    return location.to_dict(), 201
