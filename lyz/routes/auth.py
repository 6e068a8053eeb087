import logging
from datetime import datetime

from flask import Blueprint, jsonify, request

from lyz.auth import generate_refresh_token, generate_token, verify_token
from lyz.membership import validate_member
from lyz.models import Company, User, db
from lyz.routes.helpers import json_body

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


def _default_company_id(company_id):
    if company_id:
        return company_id
    company = Company.query.order_by(Company.id).first()
    return company.id if company else None


def _tokens(user):
    return {
        "accessToken": generate_token(user),
        "refreshToken": generate_refresh_token(user),
    }


@bp.route("/validate-email", methods=["GET"])
def validate_email():
    """Check an email against the membership directory before registration"""
    email = request.args.get("email")
    if not email:
        return jsonify({"message": "Email is required"}), 400

    try:
        result = validate_member(email)
        if not result["success"]:
            return jsonify({"message": result["message"]}), 404

        if User.query.filter_by(email=email).first():
            return jsonify({"message": "User already registered in Lyz"}), 409

        return jsonify({
            "message": "Email validated successfully",
            "userData": result["data"],
        })
    except Exception as e:
        logger.error(f"Error validating email: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/register", methods=["POST"])
def register():
    data = json_body()
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"message": "Email and password are required"}), 400

    try:
        if data.get("isSuperadmin"):
            return _register_superadmin(data, email, password)

        result = validate_member(email)
        if not result["success"]:
            return jsonify({"message": result["message"]}), 400

        if User.query.filter_by(email=email).first():
            return jsonify({"message": "User already exists"}), 409

        company_id = _default_company_id(data.get("company_id"))
        if not company_id:
            return jsonify({"message": "No company found in the system"}), 500

        member = result["data"] or {}
        user = User(
            curseduca_id=str(member["id"]) if member.get("id") is not None else None,
            name=member.get("name") or data.get("name") or email,
            email=member.get("email") or email,
            role="user",
            company_id=company_id,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        logger.info(f"Registered user {user.email} in company {company_id}")
        return jsonify({"message": "User registered successfully", **_tokens(user)}), 201
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error in registration: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


def _caller_is_superadmin():
    auth = request.headers.get("Authorization", "")
    token = auth.split(" ")[1] if " " in auth else auth
    claims = verify_token(token) if token else None
    return bool(claims) and claims.get("role") == "superadmin"


def _register_superadmin(data, email, password):
    """
    Superadmin creation skips the membership directory entirely.

    Only an authenticated superadmin may create another one, except for the
    very first superadmin of an empty installation.
    """
    if User.query.filter_by(role="superadmin").first() and not _caller_is_superadmin():
        return jsonify({"message": "Superadmin privileges required"}), 403

    name = data.get("name")
    if not name:
        return jsonify({"message": "Name is required for superadmin"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"message": "Superadmin already exists with this email"}), 409

    company_id = _default_company_id(data.get("company_id"))
    if not company_id:
        return jsonify({"message": "No company found in the system"}), 500

    user = User(name=name, email=email, role="superadmin", company_id=company_id)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    logger.info(f"Created superadmin {email}")
    return jsonify({"message": "Superadmin created successfully", **_tokens(user)}), 201


@bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"message": "Email and password are required"}), 400

    try:
        user = User.query.filter_by(email=email).first()
        if not user or not user.check_password(password):
            return jsonify({"message": "Invalid credentials"}), 401

        user.last_login = datetime.utcnow()
        db.session.commit()

        return jsonify({
            "message": "Login successful",
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": user.role,
                "company_id": user.company_id,
            },
            **_tokens(user),
        })
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error in login: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/refresh", methods=["POST"])
def refresh():
    data = json_body()
    refresh_token = data.get("refreshToken")
    if not refresh_token:
        return jsonify({"message": "Refresh token is required"}), 400

    claims = verify_token(refresh_token, expected_type="refresh")
    if not claims or not claims.get("id"):
        return jsonify({"message": "Invalid refresh token"}), 403

    user = db.session.get(User, claims["id"])
    if not user:
        return jsonify({"message": "User not found"}), 404

    return jsonify({"accessToken": generate_token(user)})
