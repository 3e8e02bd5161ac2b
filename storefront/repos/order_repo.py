# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.domain.errors import ConcurrencyConflict


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # np. dwa checkouty z tym samym numerem zamowienia
            self.db.rollback()
            raise ConcurrencyConflict("Order number already taken") from exc
        return order

    def get_order(self, order_id: str, customer_id: str | None = None) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        )
        if customer_id is not None:
            stmt = stmt.where(OrderModel.customer_id == customer_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders(
        self,
        customer_id: str | None = None,
        status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[OrderModel], int]:
        filters = []
        if customer_id is not None:
            filters.append(OrderModel.customer_id == customer_id)
        if status is not None:
            filters.append(OrderModel.status == status)
        if start_date is not None:
            filters.append(OrderModel.created_at >= start_date)
        if end_date is not None:
            filters.append(OrderModel.created_at <= end_date)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*filters)
        ).scalar_one()

        orders = self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(*filters)
            .order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(orders), int(total)

    def transition_status(self, order_id: str, from_status: str, to_status: str, **values) -> int:
        # zmienia wiersz tylko gdy status nadal jest ten, ktory walidowano
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == from_status)
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
