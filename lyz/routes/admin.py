import logging
from datetime import date, datetime

from flask import Blueprint, current_app, g, jsonify, request

from lyz.auth import superadmin_required, token_required
from lyz.billing import (
    get_company_stats,
    get_dashboard_data,
    get_monthly_usage_summary,
    get_token_usage_report,
    get_user_stats,
)
from lyz.models import ROLES, Company, PatientPlan, Prompt, User, db
from lyz.routes.helpers import json_body

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__)


@token_required
@superadmin_required
def _authenticate():
    pass


@bp.before_request
def require_superadmin():
    """Every admin route needs a superadmin bearer token"""
    if request.method == "OPTIONS":
        return None
    return _authenticate()


def _parse_date(value):
    if not value:
        return None
    return datetime.fromisoformat(value)


# ========== DASHBOARD ==========
@bp.route("/dashboard", methods=["GET"])
def dashboard():
    try:
        return jsonify(get_dashboard_data())
    except Exception as e:
        logger.error(f"Error fetching dashboard data: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


# ========== COMPANIES ==========
@bp.route("/companies", methods=["GET"])
def list_companies():
    try:
        companies = Company.query.order_by(Company.created_at.desc(), Company.id.desc()).all()
        return jsonify({"companies": [c.to_dict() for c in companies]})
    except Exception as e:
        logger.error(f"Error fetching companies: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/companies/<int:company_id>", methods=["GET"])
def get_company(company_id):
    try:
        company = db.session.get(Company, company_id)
        if not company:
            return jsonify({"message": "Company not found"}), 404

        return jsonify({"company": company.to_dict(), "stats": get_company_stats(company)})
    except Exception as e:
        logger.error(f"Error fetching company: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/companies", methods=["POST"])
def create_company():
    data = json_body()
    name = data.get("name")
    if not name:
        return jsonify({"message": "Company name is required"}), 400

    token_limit = data.get("token_limit")
    if token_limit is not None and (isinstance(token_limit, bool) or not isinstance(token_limit, int) or token_limit < 0):
        return jsonify({"message": "Token limit must be a non-negative integer"}), 400

    try:
        if token_limit is None:
            token_limit = current_app.config["DEFAULT_TOKEN_LIMIT"]
        company = Company(name=name, token_limit=token_limit)
        db.session.add(company)
        db.session.commit()

        logger.info(f"Created company {company.id} ({company.name})")
        return jsonify({"message": "Company created successfully", "company": company.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating company: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/companies/<int:company_id>", methods=["PUT"])
def update_company(company_id):
    data = json_body()

    token_limit = data.get("token_limit")
    if token_limit is not None and (isinstance(token_limit, bool) or not isinstance(token_limit, int) or token_limit < 0):
        return jsonify({"message": "Token limit must be a non-negative integer"}), 400

    try:
        company = db.session.get(Company, company_id)
        if not company:
            return jsonify({"message": "Company not found"}), 404

        company.name = data.get("name") or company.name
        if token_limit is not None:
            company.token_limit = token_limit
        db.session.commit()

        return jsonify({"message": "Company updated successfully", "company": company.to_dict()})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating company: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/companies/<int:company_id>", methods=["DELETE"])
def delete_company(company_id):
    try:
        company = db.session.get(Company, company_id)
        if not company:
            return jsonify({"message": "Company not found"}), 404

        user_count = User.query.filter_by(company_id=company_id).count()
        if user_count > 0:
            return jsonify({
                "message": "Cannot delete company with associated users",
                "userCount": user_count,
            }), 400

        db.session.delete(company)
        db.session.commit()

        logger.info(f"Deleted company {company_id}")
        return jsonify({"message": "Company deleted successfully"})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting company: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/companies/<int:company_id>/usage", methods=["GET"])
def company_usage(company_id):
    """Monthly token usage for one company"""
    try:
        company = db.session.get(Company, company_id)
        if not company:
            return jsonify({"message": "Company not found"}), 404

        year = request.args.get("year", date.today().year, type=int)
        summary = get_monthly_usage_summary(company_id, year)

        return jsonify({
            "company_id": company_id,
            "year": year,
            "usage_summary": summary,
            "total_tokens": sum(item["tokens"] for item in summary),
            "total_cost": sum(item["cost"] for item in summary),
        })
    except Exception as e:
        logger.error(f"Failed to get company usage: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


# ========== USERS ==========
def _user_payload(user):
    data = user.to_dict()
    data["Company"] = {"id": user.company.id, "name": user.company.name} if user.company else None
    return data


@bp.route("/users", methods=["GET"])
def list_users():
    try:
        query = User.query
        company_id = request.args.get("company_id", type=int)
        if company_id:
            query = query.filter_by(company_id=company_id)
        users = query.order_by(User.created_at.desc(), User.id.desc()).all()
        return jsonify({"users": [_user_payload(u) for u in users]})
    except Exception as e:
        logger.error(f"Error fetching users: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id):
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({"message": "User not found"}), 404

        return jsonify({"user": _user_payload(user), "stats": get_user_stats(user)})
    except Exception as e:
        logger.error(f"Error fetching user: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/users", methods=["POST"])
def create_user():
    data = json_body()
    name = data.get("name")
    email = data.get("email")
    password = data.get("password")
    company_id = data.get("company_id")
    role = data.get("role") or "user"

    if not name or not email or not password or not company_id:
        return jsonify({"message": "Name, email, password, and company ID are required"}), 400
    if role not in ROLES:
        return jsonify({"message": f"Role must be one of: {', '.join(ROLES)}"}), 400

    try:
        if User.query.filter_by(email=email).first():
            return jsonify({"message": "User already exists with this email"}), 409

        if not db.session.get(Company, company_id):
            return jsonify({"message": "Company not found"}), 404

        user = User(
            name=name,
            email=email,
            role=role,
            company_id=company_id,
            curseduca_id=data.get("curseduca_id"),
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        logger.info(f"Admin {g.current_user['id']} created user {user.email}")
        return jsonify({"message": "User created successfully", "user": user.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating user: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/users/<int:user_id>", methods=["PUT"])
def update_user(user_id):
    data = json_body()
    email = data.get("email")
    company_id = data.get("company_id")
    role = data.get("role")

    if role and role not in ROLES:
        return jsonify({"message": f"Role must be one of: {', '.join(ROLES)}"}), 400

    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({"message": "User not found"}), 404

        if email and email != user.email and User.query.filter_by(email=email).first():
            return jsonify({"message": "Email already in use"}), 409

        if company_id and company_id != user.company_id and not db.session.get(Company, company_id):
            return jsonify({"message": "Company not found"}), 404

        user.name = data.get("name") or user.name
        user.email = email or user.email
        user.role = role or user.role
        user.company_id = company_id or user.company_id
        if data.get("password"):
            user.set_password(data["password"])
        db.session.commit()

        return jsonify({"message": "User updated successfully", "user": user.to_dict()})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating user: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/users/<int:user_id>", methods=["DELETE"])
def delete_user(user_id):
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({"message": "User not found"}), 404

        plan_count = PatientPlan.query.filter_by(user_id=user_id).count()
        if plan_count > 0:
            return jsonify({
                "message": "Cannot delete user with associated plans. Transfer plans to another user first.",
                "planCount": plan_count,
            }), 400

        db.session.delete(user)
        db.session.commit()

        return jsonify({"message": "User deleted successfully"})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting user: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


# ========== PROMPTS ==========
@bp.route("/prompts", methods=["GET"])
def list_prompts():
    try:
        prompts = Prompt.query.order_by(Prompt.step_key.asc()).all()
        return jsonify({"prompts": [p.to_dict() for p in prompts]})
    except Exception as e:
        logger.error(f"Error fetching prompts: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/prompts/<int:prompt_id>", methods=["GET"])
def get_prompt(prompt_id):
    try:
        prompt = db.session.get(Prompt, prompt_id)
        if not prompt:
            return jsonify({"message": "Prompt not found"}), 404
        return jsonify({"prompt": prompt.to_dict()})
    except Exception as e:
        logger.error(f"Error fetching prompt: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/prompts/<int:prompt_id>", methods=["PUT"])
def update_prompt(prompt_id):
    data = json_body()
    content = data.get("content")
    if not content:
        return jsonify({"message": "Prompt content is required"}), 400

    temperature = data.get("temperature")
    if temperature is not None and (not isinstance(temperature, (int, float)) or not 0 <= temperature <= 2):
        return jsonify({"message": "Temperature must be a number between 0 and 2"}), 400
    max_tokens = data.get("max_tokens")
    if max_tokens is not None and (not isinstance(max_tokens, int) or max_tokens <= 0):
        return jsonify({"message": "Max tokens must be a positive integer"}), 400

    try:
        prompt = db.session.get(Prompt, prompt_id)
        if not prompt:
            return jsonify({"message": "Prompt not found"}), 404

        prompt.content = content
        prompt.temperature = temperature if temperature is not None else prompt.temperature
        prompt.max_tokens = max_tokens or prompt.max_tokens
        prompt.updated_by = g.current_user["id"]
        prompt.updated_at = datetime.utcnow()
        db.session.commit()

        logger.info(f"Prompt {prompt.step_key} updated by user {g.current_user['id']}")
        return jsonify({"message": "Prompt updated successfully", "prompt": prompt.to_dict()})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating prompt: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


# ========== TOKEN USAGE ==========
@bp.route("/tokens/usage", methods=["GET"])
def token_usage():
    try:
        start_date = _parse_date(request.args.get("start_date"))
        end_date = _parse_date(request.args.get("end_date"))
    except ValueError:
        return jsonify({"message": "Dates must be ISO formatted (YYYY-MM-DD)"}), 400

    try:
        report = get_token_usage_report(
            start_date=start_date,
            end_date=end_date,
            company_id=request.args.get("company_id", type=int),
            user_id=request.args.get("user_id", type=int),
        )
        return jsonify(report)
    except Exception as e:
        logger.error(f"Error fetching token usage: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500
