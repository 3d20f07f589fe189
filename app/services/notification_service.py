import logging
import uuid
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.notification import WORKOUT_MISSED, Notification
from app.models.user import User

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    async def create_workout_missed_notification(
        db: AsyncSession,
        *,
        trainer_id: uuid.UUID,
        client_id: uuid.UUID,
        log_id: uuid.UUID,
        plan_id: uuid.UUID,
        reason: str | None,
        event_date: date,
    ) -> Notification:
        client = await db.get(User, client_id)
        client_name = (client.full_name or client.email) if client else "Client"
        reason_label = reason or "not specified"
        notification = Notification(
            recipient_id=trainer_id,
            client_id=client_id,
            type=WORKOUT_MISSED,
            title="Workout missed",
            message=f"{client_name} did not complete the workout on {event_date.isoformat()} (reason: {reason_label})",
            related_log_id=log_id,
            related_plan_id=plan_id,
            reason=reason,
            event_date=event_date,
        )
        db.add(notification)
        await db.commit()
        return notification

    @staticmethod
    async def notify_workout_missed(
        db: AsyncSession,
        *,
        trainer_id: uuid.UUID | None,
        client_id: uuid.UUID,
        log_id: uuid.UUID,
        plan_id: uuid.UUID,
        reason: str | None,
        event_date: date,
    ) -> Notification | None:
        """Best-effort alert to the trainer; call only after the log is committed."""
        if not settings.NOTIFICATIONS_ENABLED or trainer_id is None:
            return None
        try:
            notification = await NotificationService.create_workout_missed_notification(
                db,
                trainer_id=trainer_id,
                client_id=client_id,
                log_id=log_id,
                plan_id=plan_id,
                reason=reason,
                event_date=event_date,
            )
        except Exception:
            logger.exception("Failed to create missed-workout notification for log %s", log_id)
            await db.rollback()
            return None
        logger.info("Missed-workout notification %s queued for trainer %s", notification.id, trainer_id)
        return notification
