from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime

db = SQLAlchemy()

ROLES = ("user", "superadmin")


def _iso(value):
    return value.isoformat() if value else None


class Company(db.Model):
    __tablename__ = "companies"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    token_limit = db.Column(db.Integer, nullable=False, default=10000)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "token_limit": self.token_limit,
            "created_at": _iso(self.created_at),
        }


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    curseduca_id = db.Column(db.String(255), nullable=True)  # null for superadmins
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), index=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    company = db.relationship("Company", backref=db.backref("users", lazy="dynamic"))

    def set_password(self, password: str) -> None:
        self.password = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password, password)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "company_id": self.company_id,
            "curseduca_id": self.curseduca_id,
            "last_login": _iso(self.last_login),
            "created_at": _iso(self.created_at),
        }


class Prompt(db.Model):
    __tablename__ = "prompts"
    id = db.Column(db.Integer, primary_key=True)
    step_key = db.Column(db.String(50), unique=True, nullable=False)
    content = db.Column(db.Text, nullable=False)
    temperature = db.Column(db.Float, default=0.7)
    max_tokens = db.Column(db.Integer, default=2000)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    editor = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "step_key": self.step_key,
            "content": self.content,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "updated_at": _iso(self.updated_at),
            "updated_by": self.updated_by,
            "updatedBy": {
                "id": self.editor.id,
                "name": self.editor.name,
                "email": self.editor.email,
            } if self.editor else None,
        }


class TokenUsage(db.Model):
    """Append-only billing ledger; rows are never updated or deleted."""
    __tablename__ = "token_usage"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), index=True)
    prompt_id = db.Column(db.Integer, db.ForeignKey("prompts.id"))
    tokens_used = db.Column(db.Integer, nullable=False)
    cost = db.Column(db.Numeric(10, 6), nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User")
    company = db.relationship("Company")
    prompt = db.relationship("Prompt")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "prompt_id": self.prompt_id,
            "tokens_used": self.tokens_used,
            "cost": float(self.cost or 0),
            "timestamp": _iso(self.timestamp),
            "User": {"id": self.user.id, "name": self.user.name, "email": self.user.email} if self.user else None,
            "Company": {"id": self.company.id, "name": self.company.name} if self.company else None,
            "Prompt": {"id": self.prompt.id, "step_key": self.prompt.step_key} if self.prompt else None,
        }


class PatientPlan(db.Model):
    __tablename__ = "patient_plans"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), index=True)
    professional_type = db.Column(db.String(50), nullable=False)
    patient_data = db.Column(db.JSON, nullable=False)
    questionnaire_data = db.Column(db.JSON, nullable=True)
    lab_results = db.Column(db.JSON, nullable=True)
    tcm_observations = db.Column(db.JSON, nullable=True)
    timeline_data = db.Column(db.JSON, nullable=True)
    ifm_matrix = db.Column(db.JSON, nullable=True)
    final_plan = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def summary(self):
        return {
            "id": self.id,
            "patient_data": self.patient_data,
            "professional_type": self.professional_type,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_dict(self):
        data = self.summary()
        data.update({
            "user_id": self.user_id,
            "company_id": self.company_id,
            "questionnaire_data": self.questionnaire_data,
            "lab_results": self.lab_results,
            "tcm_observations": self.tcm_observations,
            "timeline_data": self.timeline_data,
            "ifm_matrix": self.ifm_matrix,
            "final_plan": self.final_plan,
        })
        return data
