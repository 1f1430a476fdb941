import logging
from django.contrib.auth.signals import user_logged_in, user_login_failed
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(user_logged_in)
def log_user_login(sender, user, request, **kwargs):
    """
    Record successful logins.
    """
    ip = request.META.get('REMOTE_ADDR') if request else 'Unknown'
    logger.info(f"User {user.id} logged in from {ip}")


@receiver(user_login_failed)
def log_failed_login(sender, credentials, request=None, **kwargs):
    # credentials are already scrubbed of the password by Django
    ip = request.META.get('REMOTE_ADDR') if request else 'Unknown'
    logger.warning(f"Failed login for {credentials.get('email', '?')} from {ip}")
