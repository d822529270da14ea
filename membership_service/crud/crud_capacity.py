# membership_service/crud/crud_capacity.py
"""
Capacity overrides, level aggregates and the bucket lock rows.
"""

from typing import Optional
from sqlalchemy.orm import Session

from membership_service.models.capacity import (
    CapacityOverride,
    CellLevelCapacity,
    SeatBucket,
)
from membership_service.utils.timeutils import utcnow

SCOPE_COLUMNS = ("level", "zone", "country_id", "state_id", "district_id", "mandal_id")


class CRUDCapacity:
    def get_override(self, db: Session, bucket_key: str) -> Optional[CapacityOverride]:
        return (
            db.query(CapacityOverride)
            .filter(CapacityOverride.bucket_key == bucket_key)
            .first()
        )

    def upsert_override(
        self, db: Session, *, bucket_key: str, scope: dict, capacity: int
    ) -> CapacityOverride:
        db_obj = self.get_override(db, bucket_key)
        if db_obj is None:
            db_obj = CapacityOverride(bucket_key=bucket_key, **scope)
            db.add(db_obj)
        db_obj.capacity = capacity
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_level_capacity(
        self, db: Session, aggregate_key: str, *, for_update: bool = False
    ) -> Optional[CellLevelCapacity]:
        query = db.query(CellLevelCapacity).filter(
            CellLevelCapacity.aggregate_key == aggregate_key
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def upsert_level_capacity(
        self, db: Session, *, aggregate_key: str, scope: dict, capacity: int
    ) -> CellLevelCapacity:
        db_obj = self.get_level_capacity(db, aggregate_key)
        if db_obj is None:
            db_obj = CellLevelCapacity(aggregate_key=aggregate_key, **scope)
            db.add(db_obj)
        db_obj.capacity = capacity
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def lock_bucket(self, db: Session, bucket_key: str) -> SeatBucket:
        """
        SELECT ... FOR UPDATE on the bucket row, creating it on first use.

        Two first-time creators race on the primary key; the loser gets an
        IntegrityError at flush and its unit of work is replayed.
        """
        bucket = (
            db.query(SeatBucket)
            .filter(SeatBucket.bucket_key == bucket_key)
            .with_for_update()
            .first()
        )
        if bucket is None:
            bucket = SeatBucket(bucket_key=bucket_key)
            db.add(bucket)
            db.flush()
        bucket.last_allocated_at = utcnow()
        return bucket


capacity = CRUDCapacity()
