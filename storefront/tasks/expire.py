# storefront/tasks/expire.py
from datetime import datetime

from sqlalchemy.orm import Session

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.cart_repo import CartRepo
from storefront.utils.timeutils import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def purge_expired_carts(db: Session, now: datetime | None = None) -> int:
    """Usuwa koszyki anonimowe po terminie (najpierw pozycje). Zwraca liczbe koszykow."""
    repo = CartRepo(db)
    try:
        removed = repo.delete_expired_carts(now or utcnow())
        repo.commit()
    except Exception:
        repo.rollback()
        raise
    return removed


@celery_app.task(name="storefront.tasks.expire.purge_expired_carts_task")
def purge_expired_carts_task():
    logger.info("Purge expired carts task started")

    db = SessionLocal()
    try:
        removed = purge_expired_carts(db)
        logger.info(f"Purged {removed} expired anonymous cart(s)")
        return removed
    finally:
        db.close()
