"""
Signed, time-limited access tokens for the JSON API.

A token is the user's primary key signed with ``TimestampSigner``;
introspection verifies the signature and age and loads the user. Tokens are
invalidated by password changes because the signature salt includes the
current password hash.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing

logger = logging.getLogger(__name__)

TOKEN_SALT = 'accounts.access-token'


def _signer(user=None, password_hash=''):
    if user is not None:
        password_hash = user.password
    return signing.TimestampSigner(salt=f"{TOKEN_SALT}:{password_hash[-12:]}")


def issue_token(user):
    """Return a new access token for ``user``."""
    payload = signing.dumps({'uid': user.pk}, salt=TOKEN_SALT)
    return _signer(user).sign(payload)


def token_from_header(header):
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def introspect_token(token):
    """
    Resolve ``token`` to an active user, or None when the token is malformed,
    expired, revoked, or belongs to an inactive account.
    """
    payload, _, _ = token.rpartition(':')
    payload, _, _ = payload.rpartition(':')
    try:
        uid = signing.loads(payload, salt=TOKEN_SALT)['uid']
    except (signing.BadSignature, KeyError, TypeError):
        return None

    User = get_user_model()
    user = User.objects.filter(pk=uid, is_active=True).first()
    if user is None:
        return None

    try:
        _signer(user).unsign(token, max_age=settings.ACCESS_TOKEN_MAX_AGE)
    except signing.SignatureExpired:
        logger.info(f"Expired access token presented for user {uid}")
        return None
    except signing.BadSignature:
        return None
    return user
