from flask import Blueprint, jsonify, request, current_app
from loguru import logger

from auth.utils import token_required
from services.bill_service import BillService
from utils.error_handlers import handle_errors


def _open_rate_limit():
    return current_app.config.get("OPEN_RATELIMIT", "120 per minute")


def create_bill_blueprint(bill_service: BillService, limiter):
    bill_bp = Blueprint("bill", __name__, url_prefix="/api/v1/bill")

    @bill_bp.route("/<company_id>", methods=["GET"])
    @token_required
    @handle_errors
    def get_historical_bills(current_user, company_id):
        result = bill_service.get_historical_bills(
            current_user,
            company_id,
            page=request.args.get("page"),
            limit=request.args.get("limit"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return jsonify(result), 200

    @bill_bp.route("/<company_id>", methods=["POST"])
    @token_required
    @handle_errors
    def create_bill(current_user, company_id):
        data = request.get_json(silent=True) or {}
        bill = bill_service.create_bill(current_user, company_id, data)
        return jsonify({"message": "Bill created", "bill": bill.to_dict()}), 201

    @bill_bp.route("/<company_id>/params", methods=["GET"])
    @token_required
    @handle_errors
    def get_bill_params(current_user, company_id):
        keys = bill_service.get_bill_params(current_user, company_id)
        return jsonify({"keys": keys}), 200

    # Open period views are not behind authentication; they are rate limited instead
    @bill_bp.route("/<company_id>/open/<year>/<month>", methods=["GET"])
    @limiter.limit(_open_rate_limit)
    @handle_errors
    def get_bill_open(company_id, year, month):
        bill = bill_service.get_bill_open(company_id, year, month)
        return jsonify({"bill": bill.to_dict()}), 200

    @bill_bp.route("/<company_id>/open/<year>/<month>/case/<case_id>", methods=["GET"])
    @limiter.limit(_open_rate_limit)
    @handle_errors
    def get_bill_case_details(company_id, year, month, case_id):
        result = bill_service.get_bill_case_details(company_id, year, month, case_id)
        return jsonify(result), 200

    @bill_bp.route("/<company_id>/open/<year>/case/<case_id>", methods=["GET"])
    @limiter.limit(_open_rate_limit)
    @handle_errors
    def get_yearly_case_details(company_id, year, case_id):
        result = bill_service.get_yearly_case_details(company_id, year, case_id)
        logger.debug(f"Yearly case {case_id} for company {company_id}/{year} served")
        return jsonify(result), 200

    @bill_bp.route("/<company_id>/<bill_id>", methods=["GET"])
    @token_required
    @handle_errors
    def get_bill(current_user, company_id, bill_id):
        bill = bill_service.get_bill(current_user, company_id, bill_id)
        return jsonify({"bill": bill.to_dict()}), 200

    @bill_bp.route("/<company_id>/<bill_id>", methods=["PUT"])
    @token_required
    @handle_errors
    def update_bill_payment(current_user, company_id, bill_id):
        data = request.get_json(silent=True) or {}
        bill = bill_service.update_bill_payment(current_user, company_id, bill_id, data)
        return jsonify({"message": "Bill updated", "bill": bill.to_dict()}), 200

    @bill_bp.route("/<company_id>/<bill_id>", methods=["DELETE"])
    @token_required
    @handle_errors
    def delete_bill(current_user, company_id, bill_id):
        deleted_id = bill_service.delete_bill(current_user, company_id, bill_id)
        return jsonify(
            {"message": "Bill deleted successfully", "billId": deleted_id}
        ), 200

    return bill_bp
