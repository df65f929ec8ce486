from functools import wraps
from flask import request
from app.models import Principal
from app.services.user_service import UserService
from app.utils.errors import Forbidden, Unauthenticated


def _bearer_token():
    auth_header = request.headers.get('Authorization', '')
    # Bearer <token>
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def token_required(f):
    """Resolve the caller from the bearer token and pass it to the view as ``Principal``.

    The user row is re-read on every request so role changes apply at once.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise Unauthenticated('Token is missing!')

        current_user = UserService.user_from_token(token)
        return f(Principal.from_user(current_user), *args, **kwargs)

    return decorated


def token_optional(f):
    """Like ``token_required`` but passes ``None`` for anonymous callers."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _bearer_token()
        principal = None
        if token:
            try:
                principal = Principal.from_user(UserService.user_from_token(token))
            except Unauthenticated:
                principal = None
        return f(principal, *args, **kwargs)

    return decorated


def admin_required(f):
    # Stack under token_required:
    #   @token_required
    #   @admin_required
    # so the principal arrives as the first argument.
    @wraps(f)
    def decorated(*args, **kwargs):
        principal = args[0]
        if not principal.is_admin:
            raise Forbidden('Admin privilege required')
        return f(*args, **kwargs)
    return decorated
