# orderahead/repos/push_repo.py
from datetime import datetime

from sqlalchemy import select, delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orderahead.data.models.push_subscription import PushSubscriptionModel
from orderahead.domain.errors import PersistenceError


class PushSubscriptionRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_endpoint(self, endpoint: str) -> PushSubscriptionModel | None:
        return self.db.execute(
            select(PushSubscriptionModel).where(PushSubscriptionModel.endpoint == endpoint)
        ).scalar_one_or_none()

    def upsert(self, business_id: int, endpoint: str, p256dh: str, auth: str) -> PushSubscriptionModel:
        """Insert or update keyed by endpoint. One row per device, ever."""
        for attempt in range(2):
            sub = self.get_by_endpoint(endpoint)
            if sub is None:
                sub = PushSubscriptionModel(endpoint=endpoint)
                self.db.add(sub)

            sub.business_id = business_id
            sub.p256dh = p256dh
            sub.auth = auth
            sub.stale_at = None

            try:
                self.db.commit()
            except IntegrityError:
                #someone inserted the same endpoint between our select and insert
                self.db.rollback()
                if attempt == 1:
                    raise PersistenceError(f"Could not register endpoint {endpoint}")
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                raise PersistenceError(f"Could not register endpoint: {e}") from e

            self.db.refresh(sub)
            return sub

    def list_active(self, business_id: int) -> list[PushSubscriptionModel]:
        return list(
            self.db.execute(
                select(PushSubscriptionModel)
                .where(
                    PushSubscriptionModel.business_id == business_id,
                    PushSubscriptionModel.stale_at.is_(None),
                )
                .order_by(PushSubscriptionModel.id)
            ).scalars().all()
        )

    def mark_stale(self, endpoint: str, when: datetime) -> int:
        rowcount = self.db.execute(
            update(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.endpoint == endpoint,
                PushSubscriptionModel.stale_at.is_(None),
            )
            .values(stale_at=when)
            .execution_options(synchronize_session=False)
        ).rowcount
        self.db.commit()
        return rowcount

    def delete_endpoint(self, business_id: int, endpoint: str) -> int:
        rowcount = self.db.execute(
            delete(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.business_id == business_id,
                PushSubscriptionModel.endpoint == endpoint,
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        self.db.commit()
        return rowcount

    def purge_stale(self, older_than: datetime) -> int:
        rowcount = self.db.execute(
            delete(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.stale_at.is_not(None),
                PushSubscriptionModel.stale_at < older_than,
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        self.db.commit()
        return rowcount
