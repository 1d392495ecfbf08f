# File: core/nonces.py
# Version: 1.0.0
# Author: vas
# Modified: 2026-10-19

"""
Per-action anti-forgery tokens for admin forms.

A token is the signed ``"<user pk>:<session key>"`` pair, salted with the
action name, so it only verifies for the same action, user and session
within NONCE_LIFETIME seconds.
"""

import logging

from django.conf import settings
from django.core import signing
from django.core.exceptions import PermissionDenied
from django.utils.crypto import constant_time_compare
from django.utils.translation import gettext as _

admin_logger = logging.getLogger('core.admin')

DEFAULT_NONCE_LIFETIME = 60 * 60 * 24


def _salt(action: str) -> str:
    return f"core.nonce.{action}"


def _subject(request) -> str:
    user = getattr(request, "user", None)
    user_id = user.pk if user is not None and user.is_authenticated else 0
    session = getattr(request, "session", None)
    session_key = (session.session_key if session is not None else None) or ""
    return f"{user_id}:{session_key}"


def create_nonce(request, action: str) -> str:
    return signing.dumps(_subject(request), salt=_salt(action))


def verify_nonce(request, nonce, action: str) -> bool:
    if not nonce:
        return False
    lifetime = getattr(settings, "NONCE_LIFETIME", DEFAULT_NONCE_LIFETIME)
    try:
        subject = signing.loads(nonce, salt=_salt(action), max_age=lifetime)
    except signing.BadSignature:
        return False
    return isinstance(subject, str) and constant_time_compare(subject, _subject(request))


def require_nonce(request, action: str, field: str) -> None:
    """
    Abort the request unless POST[field] carries a valid token for ``action``.
    """
    if verify_nonce(request, request.POST.get(field), action):
        return
    user = getattr(request, "user", None)
    admin_logger.warning(
        f"Security check failed for action '{action}' "
        f"(user={getattr(user, 'username', '') or 'anonymous'}, path={request.path})"
    )
    raise PermissionDenied(_("Security check failed."))
