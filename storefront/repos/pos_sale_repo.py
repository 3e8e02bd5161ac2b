from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.pos_sale import PosSaleModel
from storefront.domain.enums import PosSaleStatus
from storefront.domain.errors import ConcurrencyConflict


class PosSaleRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_sale(self, sale: PosSaleModel) -> PosSaleModel:
        self.db.add(sale)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConcurrencyConflict("Sale number already taken") from exc
        return sale

    def get_sale(self, sale_id: str) -> PosSaleModel | None:
        # po id albo po numerze paragonu
        return self.db.execute(
            select(PosSaleModel)
            .options(selectinload(PosSaleModel.items))
            .where(or_(PosSaleModel.id == sale_id, PosSaleModel.sale_number == sale_id))
        ).scalar_one_or_none()

    def list_sales(
        self,
        status: str | None = None,
        payment_type: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[PosSaleModel], int]:
        filters = []
        if status is not None:
            filters.append(PosSaleModel.status == status)
        if payment_type is not None:
            filters.append(PosSaleModel.payment_type == payment_type)
        if start_date is not None:
            filters.append(PosSaleModel.created_at >= start_date)
        if end_date is not None:
            filters.append(PosSaleModel.created_at <= end_date)

        total = self.db.execute(
            select(func.count(PosSaleModel.id)).where(*filters)
        ).scalar_one()

        sales = self.db.execute(
            select(PosSaleModel)
            .options(selectinload(PosSaleModel.items))
            .where(*filters)
            .order_by(PosSaleModel.created_at.desc(), PosSaleModel.sale_number.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(sales), int(total)

    def mark_voided(self, sale_id: str, now: datetime) -> int:
        # tylko jeden z rownoleglych voidow zmieni wiersz
        result = self.db.execute(
            update(PosSaleModel)
            .where(
                PosSaleModel.id == sale_id,
                PosSaleModel.status == PosSaleStatus.COMPLETED.value,
            )
            .values(status=PosSaleStatus.VOIDED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
