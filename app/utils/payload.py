from flask import request

from app.utils.errors import MissingFields


def json_body():
    """The request's JSON object, ``{}`` when there is no body.

    Anything other than an object (a list, a string, a number) is rejected
    with ``MissingFields`` since none of its fields can be read.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MissingFields(message='Request body must be a JSON object.')
    return data
