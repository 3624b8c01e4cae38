from flask import Blueprint, jsonify, request

from auth.utils import token_required, roles_required, validate_input
from services.company_service import CompanyService
from utils.error_handlers import handle_errors


def create_company_blueprint(company_service: CompanyService):
    company_bp = Blueprint("company", __name__, url_prefix="/api/v1/company")

    @company_bp.route("/", methods=["GET"])
    @token_required
    @roles_required("super", "admin")
    @handle_errors
    def get_all_companies(current_user):
        companies = company_service.get_all_companies()
        return jsonify([company.to_dict() for company in companies]), 200

    @company_bp.route("/", methods=["POST"])
    @token_required
    @roles_required("super", "admin")
    @validate_input(["name", "email", "contact_person_name", "contact_person_phone"])
    @handle_errors
    def create_company(current_user):
        company = company_service.create_company(request.get_json())
        return jsonify(
            {"message": "Company created successfully", "company": company.to_dict()}
        ), 201

    @company_bp.route("/my", methods=["GET"])
    @token_required
    @handle_errors
    def get_my_company(current_user):
        company = company_service.get_my_company(current_user)
        return jsonify(company.to_dict()), 200

    @company_bp.route("/my", methods=["PUT"])
    @token_required
    @handle_errors
    def update_my_company(current_user):
        data = request.get_json(silent=True) or {}
        company = company_service.update_my_company(current_user, data)
        return jsonify(
            {"message": "Company updated successfully", "company": company.to_dict()}
        ), 200

    @company_bp.route("/<company_id>", methods=["GET"])
    @token_required
    @roles_required("admin")
    @handle_errors
    def get_company_by_id(current_user, company_id):
        company = company_service.get_company(company_id)
        return jsonify(company.to_dict()), 200

    @company_bp.route("/<company_id>", methods=["PUT"])
    @token_required
    @handle_errors
    def update_company(current_user, company_id):
        data = request.get_json(silent=True) or {}
        company = company_service.update_company(current_user, company_id, data)
        return jsonify(
            {"message": "Company updated successfully", "company": company.to_dict()}
        ), 200

    @company_bp.route("/<company_id>", methods=["DELETE"])
    @token_required
    @roles_required("admin")
    @handle_errors
    def delete_company(current_user, company_id):
        company_service.delete_company(company_id)
        return jsonify({"message": "Company deleted successfully"}), 200

    return company_bp
