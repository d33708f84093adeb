from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Discussion, DiscussionComment, DiscussionUpvote
from .services import bump_version


@receiver(post_save, sender=Discussion)
@receiver(post_delete, sender=Discussion)
@receiver(post_save, sender=DiscussionComment)
@receiver(post_delete, sender=DiscussionComment)
@receiver(post_save, sender=DiscussionUpvote)
@receiver(post_delete, sender=DiscussionUpvote)
def discussion_changed(sender, **kwargs):
    bump_version()
