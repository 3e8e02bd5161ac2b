# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_CONFIRMATION = "order_confirmation"
ORDER_STATUS_UPDATE = "order_status_update"


class NotificationService:
    """
    Wysylka powiadomien przez Celery, fire-and-forget.
    Blad kolejki nie moze zepsuc checkoutu, wiec tylko logujemy.
    """

    def send(self, customer_id: str, template: str, data: dict) -> None:
        try:
            send_notification_task.delay(customer_id, template, data)
        except Exception as e:
            logger.warning(
                f"Could not enqueue '{template}' notification for customer {customer_id}: {e}"
            )


@celery_app.task(name="storefront.services.notification_service.send_notification_task")
def send_notification_task(customer_id: str, template: str, data: dict):
    """
    Celery task - w prawdziwym systemie wyslalby email/SMS/push.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] customer={customer_id} template={template} data={data}")

    return {"customer_id": customer_id, "template": template, "status": "sent"}
