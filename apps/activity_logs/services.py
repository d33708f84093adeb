import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address

from .models import ActivityLog

logger = logging.getLogger(__name__)


def _valid_ip(value: str) -> bool:
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return False
    return True


def client_ip(request) -> str:
    """First X-Forwarded-For hop, then REMOTE_ADDR, else "unknown".

    Values that are not IPv4/IPv6 addresses are skipped.
    """
    if request is None:
        return "unknown"
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if _valid_ip(first):
            return first
        logger.debug("ignoring malformed X-Forwarded-For %r", first[:64])
    remote = request.META.get("REMOTE_ADDR") or ""
    return remote if _valid_ip(remote) else "unknown"


def log_activity(action: str, *, user=None, request=None, details=None) -> ActivityLog:
    if user is None and request is not None and request.user.is_authenticated:
        user = request.user
    entry = ActivityLog.objects.create(
        user=user,
        action=action,
        details=details or {},
        ip_address=client_ip(request),
    )
    logger.debug("activity %s user_id=%s", action, getattr(user, "pk", None))
    return entry
