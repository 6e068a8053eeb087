"""Chat-completion gateway: budget check, one API call, usage ledger entry."""
import json
import logging

from flask import current_app
from openai import OpenAI

from lyz.models import Company, Prompt, db
from lyz.usage import check_token_limit, record_token_usage

logger = logging.getLogger(__name__)

STEP_KEYS = (
    "questionnaire_organization",
    "lab_results_analysis",
    "tcm_analysis",
    "timeline_generation",
    "ifm_matrix_generation",
    "plan_medical_nutritionist",
    "plan_other_professional",
)


class CompletionClient:
    """Thin wrapper around the OpenAI chat completions endpoint"""

    def __init__(self, api_key=None, client=None):
        self._client = client
        self._api_key = api_key

    @property
    def client(self):
        # built lazily so the app can start without an API key
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def complete(self, model, system, user, temperature, max_tokens):
        """Return (text, total_tokens)"""
        response = self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        usage = getattr(response, "usage", None)
        tokens = (getattr(usage, "total_tokens", 0) or 0) if usage else 0
        return response.choices[0].message.content, tokens


def get_completion_client():
    return current_app.extensions["llm"]


def generate_ai_response(user_id, company_id, step_key, input_data, model=None):
    """
    Run one generation for a tenant.

    The company row is locked for the whole check / call / record sequence so
    concurrent requests of the same tenant cannot jointly overrun its budget.
    Returns {"success": True, "data", "tokens_used"} or
    {"success": False, "message"}; never raises.
    """
    model = model or current_app.config["OPENAI_MODEL"]
    try:
        company = db.session.query(Company).filter_by(id=company_id).with_for_update().first()
        if company is None:
            raise LookupError("Company not found")

        limit = check_token_limit(company)
        if not limit["has_enough_tokens"]:
            db.session.rollback()
            logger.info(f"Company {company_id} is over its token budget, skipping {step_key}")
            return {"success": False, "message": limit["message"]}

        prompt = Prompt.query.filter_by(step_key=step_key).first()
        if prompt is None:
            raise LookupError(f"Prompt not found for step: {step_key}")

        text, tokens_used = get_completion_client().complete(
            model=model,
            system=prompt.content,
            user=json.dumps(input_data, default=str),
            temperature=prompt.temperature,
            max_tokens=prompt.max_tokens,
        )

        record_token_usage(user_id, company_id, prompt.id, tokens_used, model)
        db.session.commit()
        logger.info(f"Generated {step_key} for company {company_id}: {tokens_used} tokens")

        return {"success": True, "data": text, "tokens_used": tokens_used}
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error generating AI response for {step_key}: {e}")
        return {"success": False, "message": str(e) or "Error generating AI response"}
