# storefront/repos/sequence_repo.py
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.sequence import SequenceModel
from storefront.domain.errors import ConcurrencyConflict


class SequenceRepo:
    """
    Numeracja w ramach zakresu (rok dla zamowien, dzien dla POS).
    Wolane wewnatrz transakcji wywolujacego, nie commituje.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, scope: str) -> int:
        # UPDATE trzyma blokade wiersza do konca transakcji
        result = self.db.execute(
            update(SequenceModel)
            .where(SequenceModel.scope == scope)
            .values(last_value=SequenceModel.last_value + 1)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            self.db.add(SequenceModel(scope=scope, last_value=1))
            try:
                self.db.flush()
            except IntegrityError as exc:
                self.db.rollback()
                raise ConcurrencyConflict(f"Sequence {scope} was started concurrently") from exc
            return 1

        return int(
            self.db.execute(
                select(SequenceModel.last_value).where(SequenceModel.scope == scope)
            ).scalar_one()
        )
