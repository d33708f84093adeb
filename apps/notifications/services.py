import logging

from .models import Notification

logger = logging.getLogger(__name__)


def notify(users, *, title: str, body: str = "", link: str = "", announcement=None) -> int:
    """Create one notification per distinct user; returns how many were created."""
    seen = set()
    rows = []
    for user in users:
        if user.pk in seen:
            continue
        seen.add(user.pk)
        rows.append(
            Notification(user=user, title=title, body=body, link=link, announcement=announcement)
        )
    Notification.objects.bulk_create(rows)
    logger.info("Created %s notifications: %s", len(rows), title)
    return len(rows)


def mark_all_read(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True)
