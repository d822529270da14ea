# membership_service/services/membership/fee_resolver.py
"""
Fee and validity resolution for a seat.

Every price override of the designation is a candidate. Each scope column
that is set on the override AND equal to the seat's value adds its weight:

    cell 8, level 4, mandal 3, zone 2, state 2, district 2

A set column that disagrees with the seat adds nothing and does not
disqualify the override. The highest score wins; ties go to the higher
priority, then to the newest override. With no overrides the designation
defaults apply.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.core.config import settings
from membership_service.utils.timeutils import as_utc

PRICE_FIELD_WEIGHTS = (
    ("cell_id", 8),
    ("level", 4),
    ("mandal_id", 3),
    ("zone", 2),
    ("state_id", 2),
    ("district_id", 2),
)

SOURCE_OVERRIDE = "override"
SOURCE_DEFAULT = "designation_default"

NEVER = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class FeeQuote:
    fee: int                 # minor units
    currency: str
    validity_days: int
    source: str              # SOURCE_OVERRIDE or SOURCE_DEFAULT
    override_id: Optional[str] = None
    score: Optional[int] = None


def score_price(price, scope) -> int:
    score = 0
    for field, weight in PRICE_FIELD_WEIGHTS:
        value = getattr(price, field)
        if value is not None and value == getattr(scope, field):
            score += weight
    return score


class FeeResolver:
    """Resolves the fee, currency and validity period for a seat scope."""

    def __init__(self, default_currency: Optional[str] = None):
        self.default_currency = default_currency or settings.DEFAULT_CURRENCY

    def select_price(self, prices: Iterable, scope):
        """Returns (best_price, score), or (None, None) when there are no candidates."""
        best, best_rank = None, None
        for price in prices:
            score = score_price(price, scope)
            # id only breaks exact timestamp ties so the pick is total
            rank = (score, price.priority or 0, as_utc(price.created_at) or NEVER, price.id)
            if best_rank is None or rank > best_rank:
                best, best_rank = price, rank
        if best is None:
            return None, None
        return best, best_rank[0]

    def quote_from(self, designation, prices: Iterable, scope) -> FeeQuote:
        """Pure resolution over an already loaded candidate list."""
        price, score = self.select_price(prices, scope)
        if price is None:
            return FeeQuote(
                fee=designation.default_fee,
                currency=self.default_currency,
                validity_days=designation.default_validity_days,
                source=SOURCE_DEFAULT,
            )
        return FeeQuote(
            fee=price.fee,
            currency=price.currency or self.default_currency,
            validity_days=price.validity_days or designation.default_validity_days,
            source=SOURCE_OVERRIDE,
            override_id=price.id,
            score=score,
        )

    def quote(self, db: Session, designation, scope) -> FeeQuote:
        prices = crud.designation_price.list_for_designation(db, designation.id)
        return self.quote_from(designation, prices, scope)


fee_resolver = FeeResolver()
