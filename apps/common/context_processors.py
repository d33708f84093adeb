from .navigation import links_for
from apps.accounts.permissions import role_flags


def navigation(request):
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return {"nav_links": [], "role_flags": role_flags(None), "unread_notifications": 0}

    from apps.notifications.models import Notification

    return {
        "nav_links": links_for(user),
        "role_flags": role_flags(user),
        "unread_notifications": Notification.objects.filter(user=user, is_read=False).count(),
    }
