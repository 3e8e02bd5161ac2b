# storefront/services/pos_sale_service.py
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from storefront.data.models.pos_sale import PosSaleItemModel, PosSaleModel
from storefront.domain.enums import PaymentStatus, PosPaymentType, PosSaleStatus
from storefront.domain.errors import (
    ConcurrencyConflict,
    InsufficientStock,
    InvalidStateTransition,
    SaleNotFound,
    StorefrontError,
    VariantNotFound,
)
from storefront.domain.schemas import Pagination, PosSaleItemIn, PosSaleOut, PosSalePageOut
from storefront.repos.pos_sale_repo import PosSaleRepo
from storefront.repos.sequence_repo import SequenceRepo
from storefront.services.lock_service import LockService
from storefront.services.product_client import ProductClient
from storefront.utils.retry import db_retry
from storefront.utils.settings import VARIANT_LOCK_TTL_SECONDS
from storefront.utils.timeutils import money, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


class PosSaleService:
    """
    Sprzedaz w sklepie (POS): bez koszyka, pozycje podaje sprzedawca.

    Na czas sprawdz-i-zdejmij ze stanu kazdy wariant jest blokowany w Redis
    (w kolejnosci posortowanej, zeby dwie kasy sie nie zakleszczyly).
    Zdjecie ze stanu idzie warunkowym decrementem katalogu, a nieudana
    sprzedaz oddaje to, co juz zdjela.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        lock_service: LockService,
        clock: Callable[[], datetime] = utcnow,
        lock_ttl: int = VARIANT_LOCK_TTL_SECONDS,
    ):
        self.repo = PosSaleRepo(db)
        self.sequence_repo = SequenceRepo(db)
        self.product_client = product_client
        self.lock_service = lock_service
        self.clock = clock
        self.lock_ttl = lock_ttl

    @db_retry()
    def create_sale(
        self,
        staff_id: str,
        items: list[PosSaleItemIn],
        payment_type: str = PosPaymentType.CASH,
        notes: str | None = None,
    ) -> PosSaleOut:
        if not items:
            raise ValueError("A sale needs at least one item")
        payment_type = PosPaymentType(payment_type)

        # ten sam wariant moze wystapic w kilku pozycjach
        demand: dict[str, int] = {}
        for item in items:
            if item.variant_id:
                demand[item.variant_id] = demand.get(item.variant_id, 0) + item.quantity

        owner = str(uuid.uuid4())
        locked: list[str] = []
        decremented: list[tuple[str, int]] = []

        try:
            for variant_id in sorted(demand):
                if not self.lock_service.acquire_variant_lock(variant_id, owner, self.lock_ttl):
                    raise ConcurrencyConflict(
                        f"Variant {variant_id} is being sold at another register",
                        variant_id=variant_id,
                    )
                locked.append(variant_id)

            for variant_id in sorted(demand):
                variant = self.product_client.get_variant(variant_id)
                if variant is None:
                    raise VariantNotFound(variant_id)
                if demand[variant_id] > variant.available_stock:
                    raise InsufficientStock(variant_id, demand[variant_id], variant.available_stock)

            sale = self._build_sale(staff_id, items, payment_type, notes)
            self.repo.add_sale(sale)

            for variant_id in sorted(demand):
                quantity = demand[variant_id]
                if not self.product_client.decrement_stock(variant_id, quantity):
                    raise InsufficientStock(variant_id, quantity, self._available(variant_id))
                decremented.append((variant_id, quantity))

            self.repo.commit()
        except StorefrontError as e:
            self.repo.rollback()
            self._restock(decremented)
            logger.info(f"POS sale by staff {staff_id} rejected: {e.code}")
            raise
        except Exception:
            self.repo.rollback()
            self._restock(decremented)
            raise
        finally:
            self._release(locked, owner)

        logger.info(f"POS sale {sale.sale_number} completed by staff {staff_id}, total {sale.total}")
        return self._to_out(sale)

    def void_sale(self, sale_id: str) -> PosSaleOut:
        """
        Use Case: anulowanie sprzedazy.
        Zwrot na stan pozycji z katalogu i status VOIDED, raz.
        """
        sale = self._require_sale(sale_id)
        if sale.status == PosSaleStatus.VOIDED.value:
            raise InvalidStateTransition(sale.status, PosSaleStatus.VOIDED.value)

        restocked: list[tuple[str, int]] = []
        try:
            if self.repo.mark_voided(sale.id, self.clock()) == 0:
                raise InvalidStateTransition(PosSaleStatus.VOIDED.value, PosSaleStatus.VOIDED.value)

            for item in sale.items:
                if item.variant_id:
                    self.product_client.increment_stock(item.variant_id, item.quantity)
                    restocked.append((item.variant_id, item.quantity))

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            # cofnij zwrot, sprzedaz zostaje COMPLETED
            for variant_id, quantity in restocked:
                try:
                    self.product_client.decrement_stock(variant_id, quantity)
                except Exception:
                    logger.exception(f"Could not take back {quantity} of variant {variant_id}")
            raise

        logger.info(f"POS sale {sale.sale_number} voided, {len(restocked)} item(s) restocked")
        return self._to_out(sale)

    def get_sale(self, sale_id: str) -> PosSaleOut:
        return self._to_out(self._require_sale(sale_id))

    def list_sales(
        self,
        status: str | None = None,
        payment_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> PosSalePageOut:
        if page < 1:
            raise ValueError("Page must be 1 or greater")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        sales, total = self.repo.list_sales(
            status=PosSaleStatus(status).value if status else None,
            payment_type=PosPaymentType(payment_type).value if payment_type else None,
            start_date=_day_start(start_date),
            end_date=_day_end(end_date),
            offset=(page - 1) * limit,
            limit=limit,
        )

        return PosSalePageOut(
            sales=[self._to_out(s) for s in sales],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=(total + limit - 1) // limit,
            ),
        )

    # =====================================================
    # POMOCNICZE
    # =====================================================
    def _build_sale(
        self,
        staff_id: str,
        items: list[PosSaleItemIn],
        payment_type: PosPaymentType,
        notes: str | None,
    ) -> PosSaleModel:
        sale_items = []
        for position, item in enumerate(items):
            unit_price = money(item.unit_price)
            sale_items.append(
                PosSaleItemModel(
                    position=position,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    variant_label=item.variant_label,
                    product_sku=item.product_sku,
                    image_url=item.image_url,
                    quantity=item.quantity,
                    unit_price=unit_price,
                    line_total=money(unit_price * item.quantity),
                )
            )

        subtotal = sum((i.line_total for i in sale_items), Decimal("0.00"))
        now = self.clock()

        return PosSaleModel(
            sale_number=self._next_sale_number(now),
            staff_id=staff_id,
            subtotal=subtotal,
            total=subtotal,  # bez rabatow i dostawy
            notes=notes,
            status=PosSaleStatus.COMPLETED.value,
            payment_type=payment_type.value,
            payment_status=PaymentStatus.PAID.value,
            created_at=now,
            updated_at=now,
            items=sale_items,
        )

    def _next_sale_number(self, now: datetime) -> str:
        day = now.strftime("%Y%m%d")
        value = self.sequence_repo.next_value(f"POS-{day}")
        return f"POS-{day}-{value:04d}"

    def _available(self, variant_id: str) -> int:
        variant = self.product_client.get_variant(variant_id)
        return variant.available_stock if variant else 0

    def _restock(self, decremented: list[tuple[str, int]]) -> None:
        for variant_id, quantity in decremented:
            try:
                self.product_client.increment_stock(variant_id, quantity)
            except Exception:
                logger.exception(f"Could not restock {quantity} of variant {variant_id}")

    def _release(self, locked: list[str], owner: str) -> None:
        for variant_id in locked:
            try:
                self.lock_service.release_variant_lock(variant_id, owner)
            except Exception as e:
                # lock i tak wygasnie po TTL
                logger.warning(f"Failed to release lock for variant {variant_id}: {e}")

    def _require_sale(self, sale_id: str) -> PosSaleModel:
        sale = self.repo.get_sale(sale_id)
        if sale is None:
            raise SaleNotFound(sale_id)
        return sale

    @staticmethod
    def _to_out(sale: PosSaleModel) -> PosSaleOut:
        return PosSaleOut.model_validate(sale)


def _day_start(day: date | None) -> datetime | None:
    if day is None:
        return None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _day_end(day: date | None) -> datetime | None:
    # dzien koncowy wlacznie, do 23:59:59.999999
    if day is None:
        return None
    return datetime.combine(day, time.max, tzinfo=timezone.utc)
