import logging

from fastapi import APIRouter, Depends

from dashboard.dependencies import get_notification_service, verify_cron_secret
from services.notifications import NotificationService
from shared.models import ReminderRunResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reminders"])


@router.post("/reminders", response_model=ReminderRunResponse,
             dependencies=[Depends(verify_cron_secret)])
async def run_reminders(
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Select the habits due at the current minute and send their prompts.
    Meant to be called once a minute by an external cron.
    """
    result = await notifications.run_tick()
    logger.info(f"⏰ Reminder run: due={result['due']} sent={result['sent']}")
    return result
