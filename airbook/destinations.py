from flask import Blueprint, jsonify

from .models import Destination

destinations_bp = Blueprint("destinations", __name__, url_prefix="/api/destinations")


@destinations_bp.route("", methods=["GET"])
def list_destinations():
    destinations = Destination.query.order_by(Destination.popular.desc(), Destination.name.asc()).all()
    return jsonify({"success": True, "data": [d.to_dict() for d in destinations]})
