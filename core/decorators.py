"""Access-control decorators shared by the JSON views of every app."""
import logging
from functools import wraps

from django.http import JsonResponse
from django.middleware.csrf import CsrfViewMiddleware

from .choices import Role

logger = logging.getLogger(__name__)


def is_school_admin(user):
    """Check if user is a school admin or superuser."""
    return user.is_superuser or getattr(user, 'role', None) == Role.ADMIN


def is_teacher_or_admin(user):
    """Check if user is a teacher, school admin, or superuser."""
    return is_school_admin(user) or getattr(user, 'role', None) == Role.TEACHER


def get_request_user(request):
    """
    The authenticated user for an API request.

    Session authentication wins; otherwise an ``Authorization: Bearer``
    access token is introspected. Returns None when neither identifies an
    active user. Token-authenticated requests carry no cookie, so they are
    released from CSRF checks.
    """
    if request.user.is_authenticated:
        return request.user

    from accounts.tokens import introspect_token, token_from_header
    token = token_from_header(request.headers.get('Authorization'))
    if not token:
        return None
    user = introspect_token(token)
    if user is not None:
        request.user = user
        request._dont_enforce_csrf_checks = True
    return user


class _CSRFCheck(CsrfViewMiddleware):
    def _reject(self, request, reason):
        return reason


def csrf_failure_reason(request):
    """
    Why the request fails CSRF validation, or None when it passes.

    The JSON views are ``csrf_exempt`` at the URL level; this runs the
    middleware's checks once the caller is known.
    """
    check = _CSRFCheck(lambda req: None)
    check.process_request(request)
    return check.process_view(request, None, (), {})


def authenticate_api_request(request):
    """
    Resolve the caller of an API request.

    Returns ``(user, None)`` on success or ``(None, JsonResponse)`` with the
    401/403 to send back.
    """
    user = get_request_user(request)
    if user is None:
        return None, JsonResponse({'error': 'Unauthorized'}, status=401)
    reason = csrf_failure_reason(request)
    if reason:
        logger.warning(f"CSRF check failed for {user} on {request.path}: {reason}")
        return None, JsonResponse({'error': f'CSRF verification failed: {reason}'}, status=403)
    return user, None


def api_login_required(view_func):
    """Decorator returning 401 JSON instead of redirecting to a login page."""
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        user, error = authenticate_api_request(request)
        if error is not None:
            return error
        return view_func(request, *args, **kwargs)
    return _wrapped_view


def _role_required(check):
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            user, error = authenticate_api_request(request)
            if error is not None:
                return error
            if not check(user):
                return JsonResponse({'error': 'Forbidden'}, status=403)
            return view_func(request, *args, **kwargs)
        return _wrapped_view
    return decorator


admin_required = _role_required(is_school_admin)
admin_required.__doc__ = "Decorator to require school admin or superuser access."

teacher_or_admin_required = _role_required(is_teacher_or_admin)
teacher_or_admin_required.__doc__ = "Decorator to require teacher or admin access."
