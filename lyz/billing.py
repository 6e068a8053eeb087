# billing.py
from lyz.models import Company, User, PatientPlan, TokenUsage, db
from lyz.usage import get_company_tokens_used, get_user_tokens_used
from datetime import date, datetime, timedelta
from sqlalchemy import func


def _totals(query):
    """(tokens, cost) sums over an already filtered TokenUsage query"""
    tokens, cost = query.with_entities(
        func.coalesce(func.sum(TokenUsage.tokens_used), 0),
        func.coalesce(func.sum(TokenUsage.cost), 0),
    ).one()
    return int(tokens or 0), float(cost or 0)


def get_dashboard_data():
    """Aggregate stats for the superadmin dashboard"""
    total_tokens, total_cost = _totals(TokenUsage.query)

    thirty_days_ago = datetime.utcnow() - timedelta(days=30)
    day = func.date(TokenUsage.timestamp)
    recent = (
        db.session.query(
            day.label("date"),
            func.sum(TokenUsage.tokens_used).label("tokens"),
            func.sum(TokenUsage.cost).label("cost"),
        )
        .filter(TokenUsage.timestamp >= thirty_days_ago)
        .group_by(day)
        .order_by(day)
        .all()
    )

    tokens_sum = func.sum(TokenUsage.tokens_used)
    by_company = (
        db.session.query(
            TokenUsage.company_id,
            Company.name,
            tokens_sum.label("tokens"),
            func.sum(TokenUsage.cost).label("cost"),
        )
        .join(Company, Company.id == TokenUsage.company_id)
        .group_by(TokenUsage.company_id, Company.name)
        .order_by(tokens_sum.desc())
        .all()
    )

    return {
        "totalTokensUsed": total_tokens,
        "totalCost": total_cost,
        "userCount": User.query.filter_by(role="user").count(),
        "companyCount": Company.query.count(),
        "planCount": PatientPlan.query.count(),
        "recentTokenUsage": [
            {"date": str(r.date), "tokens": int(r.tokens or 0), "cost": float(r.cost or 0)}
            for r in recent
        ],
        "tokenUsageByCompany": [
            {
                "company_id": r.company_id,
                "Company": {"name": r.name},
                "tokens": int(r.tokens or 0),
                "cost": float(r.cost or 0),
            }
            for r in by_company
        ],
    }


def get_company_stats(company):
    tokens_used = get_company_tokens_used(company.id)
    return {
        "userCount": User.query.filter_by(company_id=company.id).count(),
        "tokensUsed": tokens_used,
        "planCount": PatientPlan.query.filter_by(company_id=company.id).count(),
        "tokensRemaining": company.token_limit - tokens_used,
    }


def get_user_stats(user):
    return {
        "planCount": PatientPlan.query.filter_by(user_id=user.id).count(),
        "tokensUsed": get_user_tokens_used(user.id),
    }


def get_token_usage_report(start_date=None, end_date=None, company_id=None, user_id=None):
    """Ledger rows matching the filters, newest first, with summary totals"""
    query = TokenUsage.query
    if start_date:
        query = query.filter(TokenUsage.timestamp >= start_date)
    if end_date:
        query = query.filter(TokenUsage.timestamp <= end_date)
    if company_id:
        query = query.filter(TokenUsage.company_id == company_id)
    if user_id:
        query = query.filter(TokenUsage.user_id == user_id)

    total_tokens, total_cost = _totals(query)
    rows = query.order_by(TokenUsage.timestamp.desc(), TokenUsage.id.desc()).all()

    return {
        "tokenUsage": [row.to_dict() for row in rows],
        "summary": {"totalTokens": total_tokens, "totalCost": total_cost},
    }


def get_monthly_usage_summary(company_id, year=None):
    """Get usage summary for a company for all months in a year"""
    if year is None:
        year = date.today().year

    summary = []
    for month in range(1, 13):
        start = datetime(year, month, 1)
        end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        query = TokenUsage.query.filter(
            TokenUsage.company_id == company_id,
            TokenUsage.timestamp >= start,
            TokenUsage.timestamp < end,
        )
        tokens, cost = _totals(query)
        if tokens:
            summary.append({
                "month": start.strftime("%Y-%m"),
                "tokens": tokens,
                "cost": cost,
            })

    return summary
