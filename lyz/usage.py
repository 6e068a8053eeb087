from decimal import Decimal

from sqlalchemy import func

from lyz.models import TokenUsage, db

# USD per 1000 tokens
MODEL_PRICING = {
    "gpt-4": {"input": Decimal("0.03"), "output": Decimal("0.06")},
    "gpt-4-32k": {"input": Decimal("0.06"), "output": Decimal("0.12")},
    "gpt-3.5-turbo": {"input": Decimal("0.0015"), "output": Decimal("0.002")},
    "gpt-3.5-turbo-16k": {"input": Decimal("0.003"), "output": Decimal("0.004")},
}
DEFAULT_MODEL = "gpt-3.5-turbo"


def calculate_cost(tokens_used, model):
    # total tokens are billed at the output rate
    price = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_MODEL])
    return (Decimal(tokens_used) / Decimal(1000)) * price["output"]


def get_company_tokens_used(company_id):
    total = db.session.query(func.coalesce(func.sum(TokenUsage.tokens_used), 0)).filter(
        TokenUsage.company_id == company_id
    ).scalar()
    return int(total or 0)


def get_user_tokens_used(user_id):
    total = db.session.query(func.coalesce(func.sum(TokenUsage.tokens_used), 0)).filter(
        TokenUsage.user_id == user_id
    ).scalar()
    return int(total or 0)


def check_token_limit(company):
    used = get_company_tokens_used(company.id)
    if used >= company.token_limit:
        return {"has_enough_tokens": False, "message": "Company token limit reached"}
    return {"has_enough_tokens": True, "tokens_left": company.token_limit - used}


def record_token_usage(user_id, company_id, prompt_id, tokens_used, model):
    """Append a ledger row; the caller owns the commit"""
    usage = TokenUsage(
        user_id=user_id,
        company_id=company_id,
        prompt_id=prompt_id,
        tokens_used=tokens_used,
        cost=calculate_cost(tokens_used, model),
    )
    db.session.add(usage)
    return usage
