from __future__ import annotations

from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission


def role_flags(user) -> dict[str, bool]:
    """Role booleans for views and templates; superusers count as admins."""
    if not getattr(user, "is_authenticated", False):
        return {"is_admin": False, "is_faculty": False, "is_student": False}
    role = getattr(user, "role", "")
    is_admin = bool(user.is_superuser or role == "ADMIN")
    return {
        "is_admin": is_admin,
        "is_faculty": role == "FACULTY" and not is_admin,
        "is_student": role == "STUDENT" and not is_admin,
    }


def has_role(user, *roles: str) -> bool:
    flags = role_flags(user)
    wanted = {r.upper() for r in roles}
    if "ADMIN" in wanted and flags["is_admin"]:
        return True
    if "FACULTY" in wanted and flags["is_faculty"]:
        return True
    if "STUDENT" in wanted and flags["is_student"]:
        return True
    return False


def role_required(*roles: str):
    """Login plus a server-side role check; other roles get a 403."""

    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if not has_role(request.user, *roles):
                raise PermissionDenied
            return view_func(request, *args, **kwargs)

        return login_required(_wrapped)

    return decorator


admin_required = role_required("ADMIN")


class IsAdminRole(BasePermission):
    """REST framework permission mirroring ``admin_required``."""

    message = "Administrator access is required."

    def has_permission(self, request, view):
        return role_flags(request.user)["is_admin"]
