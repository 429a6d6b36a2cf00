"""
Outgoing email through Django's configured email backend.
"""
import logging
from typing import List, Optional
from django.conf import settings
from django.core.mail import send_mail as django_send_mail

logger = logging.getLogger(__name__)


class EmailServiceError(Exception):
    """Raised when an email could not be handed to the backend."""
    pass


class EmailService:
    """Thin wrapper over ``django.core.mail`` with structured logging."""

    @classmethod
    def send_email(
        cls,
        to_emails: List[str],
        subject: str,
        text_content: str,
        from_email: Optional[str] = None,
    ) -> None:
        from_email = from_email or settings.DEFAULT_FROM_EMAIL

        try:
            django_send_mail(
                subject=subject,
                message=text_content,
                from_email=from_email,
                recipient_list=to_emails,
                fail_silently=False,
            )
        except Exception as e:
            logger.error(
                f"Email sending failed: {e}",
                extra={'subject': subject, 'recipient_count': len(to_emails)},
            )
            raise EmailServiceError(str(e)) from e

        logger.info(f"Email sent to {len(to_emails)} recipients", extra={'subject': subject})


def send_invitation_email(user_email: str, company_name: str, inviter_name: str,
                          role_name: str, invitation_url: str) -> None:
    """Send a company invitation email."""
    EmailService.send_email(
        to_emails=[user_email],
        subject=f"You've been invited to join {company_name}",
        text_content=(
            f"{inviter_name} invited you to join {company_name} as {role_name}.\n\n"
            f"Accept the invitation: {invitation_url}\n\n"
            f"The invitation expires in 7 days."
        ),
    )
