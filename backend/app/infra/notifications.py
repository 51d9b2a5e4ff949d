# app/infra/notifications.py
"""
Livraison des notifications : ligne in-app (table notifications) + email
best-effort au propriétaire pour une nouvelle inscription.

Aucune méthode ne lève : un échec de livraison est journalisé puis
retourné ({"error": ...}), il ne doit jamais faire échouer l'inscription.
"""
import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import log_event
from app.engine.registration.notification_policy import NewRegistrationNotice
from app.shared.enums import NotificationType
from app.shared.models import Notification

logger = logging.getLogger(__name__)


def send_new_registration_email(to_email: str, crew_name: str, journey_name: str, registration_id) -> bool:
    review_url = f"{settings.BASE_URL}/owner/registrations?registration={registration_id}"

    message = MIMEMultipart("alternative")
    message["Subject"] = f"New crew registration: {journey_name}"
    message["From"] = f"SailMS <{settings.SMTP_USER}>"
    message["To"] = to_email

    text = f"{crew_name} has registered for \"{journey_name}\". Review: {review_url}"
    html = f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #0F172A;">
        <h2 style="color: #0F172A;">New crew registration</h2>
        <p><strong>{crew_name}</strong> has registered for <strong>{journey_name}</strong>.</p>
        <div style="margin: 30px 0;">
          <a href="{review_url}"
             style="background-color: #0F172A; color: white; padding: 12px 25px; text-decoration: none; border-radius: 8px; font-weight: bold;">
             REVIEW REGISTRATION
          </a>
        </div>
      </body>
    </html>
    """
    message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    if not settings.SMTP_USER:
        return False
    try:
        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT) as server:
            server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.SMTP_USER, to_email, message.as_string())
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP error for registration {registration_id}: {e}")
        return False


class NotificationService:

    async def _create(self, db: AsyncSession, **fields) -> Dict[str, Optional[str]]:
        try:
            db.add(Notification(**fields))
            await db.commit()
            return {"error": None}
        except Exception as e:
            await db.rollback()
            log_event(
                logger, "notification.failed", level=logging.ERROR,
                user_id=fields.get("user_id"), type=str(fields.get("type")), error=str(e),
            )
            return {"error": str(e)}

    async def notify_new_registration(
        self, db: AsyncSession, notice: NewRegistrationNotice, owner_email: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        verb = "was auto-approved for" if notice.auto_approved else "has registered for"
        result = await self._create(
            db,
            user_id=notice.owner_id,
            type=NotificationType.NEW_REGISTRATION,
            title="New Crew Registration",
            message=f'{notice.crew_name} {verb} "{notice.journey_name}". Review their application now.',
            link=f"/owner/registrations/{notice.registration_id}",
            metadata_={
                "registration_id": notice.registration_id,
                "journey_id":      notice.journey_id,
                "journey_name":    notice.journey_name,
                "crew_name":       notice.crew_name,
                "sender_id":       notice.actor_id,
                "auto_approved":   notice.auto_approved,
            },
        )
        if result["error"] is None:
            log_event(
                logger, "notification.new_registration",
                registration_id=notice.registration_id, journey_id=notice.journey_id,
                owner_id=notice.owner_id,
            )
        if owner_email:
            # smtplib est bloquant
            await asyncio.to_thread(
                send_new_registration_email,
                owner_email, notice.crew_name, notice.journey_name, notice.registration_id,
            )
        return result

    async def notify_registration_decision(
        self, db: AsyncSession, crew_user_id, registration_id, journey_id, journey_name: str,
        approved: bool, reason: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        if approved:
            title = "Registration Approved"
            message = f'Your registration for "{journey_name}" has been approved.'
            type_ = NotificationType.REGISTRATION_APPROVED
        else:
            title = "Registration Not Approved"
            message = f'Your registration for "{journey_name}" was not approved.'
            if reason:
                message += f" Reason: {reason}"
            type_ = NotificationType.REGISTRATION_DENIED
        return await self._create(
            db,
            user_id=crew_user_id,
            type=type_,
            title=title,
            message=message,
            link="/crew/registrations",
            metadata_={"registration_id": registration_id, "journey_id": journey_id},
        )

    async def notify_review_needed(
        self, db: AsyncSession, owner_id, registration_id, journey_id, reason: str,
    ) -> Dict[str, Optional[str]]:
        return await self._create(
            db,
            user_id=owner_id,
            type=NotificationType.AI_REVIEW_NEEDED,
            title="Manual Review Required",
            message="A crew registration could not be assessed automatically. Please review manually.",
            link=f"/owner/registrations/{registration_id}",
            metadata_={"registration_id": registration_id, "journey_id": journey_id, "reason": reason},
        )
