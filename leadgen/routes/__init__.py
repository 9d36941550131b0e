from flask import request

NOT_AN_OBJECT = 'Request body must be a JSON object'


def json_body():
    """Request body as a dict ({} when absent); None when it isn't a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None
