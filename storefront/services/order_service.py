# storefront/services/order_service.py
from datetime import datetime
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import DeliveryType, OrderStatus, PaymentMethod, PaymentStatus
from storefront.domain.errors import (
    AddressNotFound,
    ConcurrencyConflict,
    EmptyCart,
    InvalidStateTransition,
    OrderNotFound,
    StorefrontError,
)
from storefront.domain.order_status import validate_transition
from storefront.domain.schemas import (
    OrderOut,
    OrderPageOut,
    Pagination,
    ShippingAddress,
    StoreSettings,
)
from storefront.repos.address_repo import AddressRepo
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.sequence_repo import SequenceRepo
from storefront.services.cart_resolver import CartResolver
from storefront.services.notification_service import (
    ORDER_CONFIRMATION,
    ORDER_STATUS_UPDATE,
    NotificationService,
)
from storefront.utils.retry import db_retry
from storefront.utils.settings import ORDER_NUMBER_PREFIX
from storefront.utils.timeutils import as_utc, money, utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Separacja od CartService: koszyk czyta tylko przy checkoucie.
    """

    def __init__(
        self,
        db: Session,
        notifier: NotificationService,
        store_settings: StoreSettings,
        clock: Callable[[], datetime] = utcnow,
        number_prefix: str = ORDER_NUMBER_PREFIX,
    ):
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.address_repo = AddressRepo(db)
        self.sequence_repo = SequenceRepo(db)
        self.resolver = CartResolver(db, clock=clock)
        self.notifier = notifier
        self.store_settings = store_settings
        self.clock = clock
        self.number_prefix = number_prefix

    @db_retry()
    def create_order(
        self,
        customer_id: str,
        delivery_type: str,
        payment_method: str,
        address_id: str | None = None,
        notes: str | None = None,
    ) -> OrderOut:
        """
        Use Case: checkout, koszyk -> zamowienie.

        1. Koszyk klienta nie moze byc pusty
        2. Adres: wlasny adres klienta albo adres sklepu (odbior osobisty)
        3. Kopia pozycji z cenami z koszyka
        4. Sumy liczone po stronie serwera
        5. Numer z sekwencji roku
        6. Zapis zamowienia + wyczyszczenie koszyka w jednej transakcji
        7. Powiadomienie po commicie (fire-and-forget)
        """
        delivery_type = DeliveryType(delivery_type)
        payment_method = PaymentMethod(payment_method)

        cart = self.resolver.resolve(customer_id=customer_id).cart

        try:
            lines = self.cart_repo.get_lines(cart.id)
            if not lines:
                raise EmptyCart()

            shipping = self._shipping_address(customer_id, delivery_type, address_id)

            items = []
            for position, line in enumerate(lines):
                unit_price = money(line.unit_price)
                items.append(
                    OrderItemModel(
                        position=position,
                        variant_id=line.variant_id,
                        product_name=line.display_name,
                        variant_label=line.variant_label,
                        quantity=line.quantity,
                        unit_price=unit_price,
                        line_total=money(unit_price * line.quantity),
                    )
                )

            subtotal = sum((item.line_total for item in items), Decimal("0.00"))
            delivery_fee = self._delivery_fee(delivery_type, subtotal)
            discount = Decimal("0.00")
            total = money(subtotal + delivery_fee - discount)

            now = self.clock()
            order = OrderModel(
                order_number=self._next_order_number(now),
                customer_id=customer_id,
                delivery_type=delivery_type.value,
                payment_method=payment_method.value,
                payment_status=PaymentStatus.PENDING.value,
                status=OrderStatus.PENDING.value,
                subtotal=subtotal,
                delivery_fee=delivery_fee,
                discount=discount,
                total=total,
                shipping_address=shipping.model_dump(),
                customer_notes=notes,
                created_at=now,
                updated_at=now,
                items=items,
            )
            self.repo.add_order(order)

            # zamowienie i pusty koszyk albo nic
            self.cart_repo.delete_lines(cart.id)
            rowcount = self.cart_repo.update_cart_version(
                cart_id=cart.id,
                old_version=cart.version,
                new_data={"version": cart.version + 1, "updated_at": now},
            )
            if rowcount == 0:
                raise ConcurrencyConflict(
                    "Cart was modified during checkout", cart_id=cart.id
                )

            self.repo.commit()
        except StorefrontError as e:
            self.repo.rollback()
            logger.info(f"Checkout for customer {customer_id} rejected: {e.code}")
            raise
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} created for customer {customer_id}, total {total}"
        )

        out = self._to_out(order)
        self.notifier.send(
            customer_id,
            ORDER_CONFIRMATION,
            {
                "order_id": out.id,
                "order_number": out.order_number,
                "total": str(out.total),
                "delivery_type": out.delivery_type.value,
            },
        )
        return out

    def get_order(self, order_id: str, customer_id: str | None = None) -> OrderOut:
        return self._to_out(self._require_order(order_id, customer_id))

    def list_orders(
        self,
        customer_id: str | None = None,
        status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> OrderPageOut:
        if page < 1:
            raise ValueError("Page must be 1 or greater")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        status_value = OrderStatus(status).value if status else None
        orders, total = self.repo.list_orders(
            customer_id=customer_id,
            status=status_value,
            start_date=as_utc(start_date),
            end_date=as_utc(end_date),
            offset=(page - 1) * limit,
            limit=limit,
        )

        return OrderPageOut(
            orders=[self._to_out(o) for o in orders],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=(total + limit - 1) // limit,
            ),
        )

    def update_status(self, order_id: str, status: str, admin_notes: str | None = None) -> OrderOut:
        """Use Case: zmiana statusu przez admina, tylko dozwolone przejscia."""
        target = OrderStatus(status)
        order = self._require_order(order_id)
        previous = order.status

        validate_transition(order.status, target, order.delivery_type)

        now = self.clock()
        values = {"updated_at": now}
        if admin_notes is not None:
            values["admin_notes"] = admin_notes
        if target == OrderStatus.DELIVERED:
            values["delivered_at"] = now

        self._apply_transition(order, target, values)
        logger.info(f"Order {order.order_number} status {previous} -> {target.value}")

        out = self._to_out(order)
        self._notify_status(out)
        return out

    def cancel_order(self, order_id: str, customer_id: str | None = None) -> OrderOut:
        order = self._require_order(order_id, customer_id)
        previous = order.status

        # DELIVERED i CANCELLED sa koncowe
        validate_transition(order.status, OrderStatus.CANCELLED, order.delivery_type)

        self._apply_transition(order, OrderStatus.CANCELLED, {"updated_at": self.clock()})
        logger.info(f"Order {order.order_number} cancelled (was {previous})")

        out = self._to_out(order)
        self._notify_status(out)
        return out

    # =====================================================
    # POMOCNICZE
    # =====================================================
    def _require_order(self, order_id: str, customer_id: str | None = None) -> OrderModel:
        order = self.repo.get_order(order_id, customer_id=customer_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _shipping_address(
        self,
        customer_id: str,
        delivery_type: DeliveryType,
        address_id: str | None,
    ) -> ShippingAddress:
        if delivery_type == DeliveryType.STORE_PICKUP:
            # address_id ignorowany przy odbiorze w sklepie
            return ShippingAddress(
                street=self.store_settings.pickup_address,
                country=self.store_settings.store_country,
            )

        if not address_id:
            raise AddressNotFound(None)

        address = self.address_repo.get_address(address_id, customer_id)
        if address is None:
            raise AddressNotFound(address_id)

        return ShippingAddress(
            street=address.street,
            city=address.city,
            state=address.state,
            zip_code=address.zip_code,
            country=address.country,
            phone=address.phone,
        )

    def _delivery_fee(self, delivery_type: DeliveryType, subtotal: Decimal) -> Decimal:
        if delivery_type == DeliveryType.STORE_PICKUP:
            return Decimal("0.00")

        threshold = self.store_settings.free_delivery_threshold
        if threshold is not None and subtotal >= threshold:
            return Decimal("0.00")

        return money(self.store_settings.home_delivery_fee)

    def _apply_transition(self, order: OrderModel, target: OrderStatus, values: dict) -> None:
        """
        Zapis przejscia warunkowym UPDATE ... WHERE status = <zwalidowany>.
        Jesli w miedzyczasie ktos inny zmienil status, nic nie zapisujemy.
        """
        expected = order.status
        try:
            changed = self.repo.transition_status(order.id, expected, target.value, **values)
            if changed:
                self.repo.commit()
            else:
                self.repo.rollback()
        except Exception:
            self.repo.rollback()
            raise

        if not changed:
            # po rollbacku obiekt jest wygaszony, status czytany na nowo
            current = order.status
            logger.info(
                f"Order {order.order_number} changed concurrently: expected {expected}, found {current}"
            )
            raise InvalidStateTransition(current, target.value)

    def _next_order_number(self, now: datetime) -> str:
        # numeracja od 1 w kazdym roku kalendarzowym
        value = self.sequence_repo.next_value(f"ORDER-{now.year}")
        return f"{self.number_prefix}-{now.year}-{value:06d}"

    def _notify_status(self, order: OrderOut) -> None:
        self.notifier.send(
            order.customer_id,
            ORDER_STATUS_UPDATE,
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "status": order.status.value,
            },
        )

    @staticmethod
    def _to_out(order: OrderModel) -> OrderOut:
        return OrderOut.model_validate(order)
