"""Request parsing shared by the API blueprints."""

from flask import request

from errors import ValidationError


def get_json_object() -> dict:
    """
    Parse the request body as a JSON object.

    A missing or unparseable body yields {}.

    Raises:
        ValidationError: If the body is valid JSON but not an object
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
