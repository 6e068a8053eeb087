"""Curseduca membership directory lookups used to gate self-registration."""
import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

FAILURES = {
    400: ("bad_request", "Invalid request to Curseduca API"),
    401: ("unauthorized", "Unauthorized access to Curseduca API"),
    404: ("not_found", "User not found in Curseduca"),
}
GENERIC_FAILURE = ("error", "Error validating user in Curseduca")


def _failure(reason, message):
    return {"success": False, "reason": reason, "message": message}


def validate_member(email):
    """
    Look up a member by email.

    Returns {"success": True, "data": member} or a classified failure
    {"success": False, "reason": ..., "message": ...}. Never raises.
    """
    url = f"{current_app.config['CURSEDUCA_API_URL'].rstrip('/')}/members/by"
    try:
        r = requests.get(
            url,
            params={"email": email},
            headers={"api_key": current_app.config["CURSEDUCA_API_KEY"]},
            timeout=current_app.config["CURSEDUCA_TIMEOUT"],
        )
    except requests.RequestException as e:
        logger.warning(f"Curseduca lookup failed for {email}: {e}")
        return _failure(*GENERIC_FAILURE)

    if r.status_code == 200:
        try:
            return {"success": True, "data": r.json()}
        except ValueError:
            logger.warning(f"Curseduca returned a non-JSON body for {email}")
            return _failure(*GENERIC_FAILURE)

    logger.info(f"Curseduca rejected {email} with status {r.status_code}")
    return _failure(*FAILURES.get(r.status_code, GENERIC_FAILURE))
