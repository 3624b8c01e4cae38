from flask import Blueprint, jsonify


def create_misc_blueprint():
    misc_bp = Blueprint("misc", __name__)

    @misc_bp.route("/")
    def index():
        return jsonify(
            {"message": "Welcome to the API", "endpoints": {"v1": "/api/v1/"}}
        ), 200

    @misc_bp.route("/api/v1/")
    def index_v1():
        return jsonify(
            {
                "message": "Welcome to API v1",
                "endpoints": {
                    "bill": "/api/v1/bill",
                    "company": "/api/v1/company",
                },
            }
        ), 200

    return misc_bp
