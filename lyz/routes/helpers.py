from flask import request


def json_body():
    """Request JSON as a dict; anything that is not a JSON object reads as empty"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
