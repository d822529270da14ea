"""
Tests for fee and validity resolution.

Verifies that FeeResolver:
- Falls back to designation defaults with no overrides
- Scores overrides by the weighted scope columns that match
- Does not disqualify an override for a mismatching column
- Breaks score ties by priority, then by the newest override
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from membership_service.constants.membership import OrgLevel, Zone
from membership_service.services.membership.fee_resolver import (
    SOURCE_DEFAULT,
    SOURCE_OVERRIDE,
    FeeResolver,
    score_price,
)
from membership_service.services.membership.scope import Scope

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_price(id, fee, *, priority=0, created_at=T0, currency=None, validity_days=None, **scope):
    values = {
        "cell_id": None,
        "level": None,
        "zone": None,
        "state_id": None,
        "district_id": None,
        "mandal_id": None,
    }
    values.update(scope)
    return SimpleNamespace(
        id=id,
        fee=fee,
        priority=priority,
        created_at=created_at,
        currency=currency,
        validity_days=validity_days,
        **values,
    )


class TestFeeResolver:
    def setup_method(self):
        self.resolver = FeeResolver(default_currency="INR")
        self.designation = SimpleNamespace(
            id="dsg_1", default_fee=50000, default_validity_days=365
        )
        self.scope = Scope(
            cell_id="cell_women",
            designation_id="dsg_1",
            level=OrgLevel.STATE,
            state_id="st_tg",
        )

    # ------------------------------------------------------------------ #
    # Defaults
    # ------------------------------------------------------------------ #

    def test_no_overrides_uses_designation_defaults(self):
        quote = self.resolver.quote_from(self.designation, [], self.scope)

        assert quote.fee == 50000
        assert quote.currency == "INR"
        assert quote.validity_days == 365
        assert quote.source == SOURCE_DEFAULT
        assert quote.override_id is None

    def test_override_without_validity_inherits_default(self):
        prices = [make_price("p1", 1000, level=OrgLevel.STATE)]
        quote = self.resolver.quote_from(self.designation, prices, self.scope)

        assert quote.fee == 1000
        assert quote.validity_days == 365
        assert quote.source == SOURCE_OVERRIDE

    # ------------------------------------------------------------------ #
    # Scoring
    # ------------------------------------------------------------------ #

    def test_cell_outweighs_level_and_state(self):
        """A cell match (8) beats level + state (4 + 2)."""
        prices = [
            make_price("by_level_state", 2000, level=OrgLevel.STATE, state_id="st_tg"),
            make_price("by_cell", 3000, cell_id="cell_women"),
        ]
        quote = self.resolver.quote_from(self.designation, prices, self.scope)

        assert quote.override_id == "by_cell"
        assert quote.score == 8

    def test_mismatching_column_does_not_disqualify(self):
        """Set-but-different columns score nothing yet the row still competes."""
        price = make_price("p1", 700, cell_id="cell_women", state_id="st_other")
        assert score_price(price, self.scope) == 8

        quote = self.resolver.quote_from(self.designation, [price], self.scope)
        assert quote.override_id == "p1"
        assert quote.fee == 700

    def test_zero_score_override_still_beats_defaults(self):
        price = make_price("elsewhere", 900, state_id="st_other")
        quote = self.resolver.quote_from(self.designation, [price], self.scope)

        assert quote.source == SOURCE_OVERRIDE
        assert quote.score == 0
        assert quote.fee == 900

    def test_mandal_weight(self):
        scope = Scope(
            cell_id="c",
            designation_id="d",
            level=OrgLevel.MANDAL,
            state_id="s",
            district_id="ds",
            mandal_id="m",
        )
        price = make_price("p", 1, level=OrgLevel.MANDAL, state_id="s", district_id="ds", mandal_id="m")
        assert score_price(price, scope) == 4 + 2 + 2 + 3

    def test_zone_weight(self):
        scope = Scope(cell_id="c", designation_id="d", level=OrgLevel.ZONE, zone=Zone.SOUTH)
        assert score_price(make_price("p", 1, zone=Zone.SOUTH), scope) == 2
        assert score_price(make_price("q", 1, zone=Zone.NORTH), scope) == 0

    # ------------------------------------------------------------------ #
    # Tie breaks
    # ------------------------------------------------------------------ #

    def test_priority_breaks_score_tie(self):
        prices = [
            make_price("low", 100, level=OrgLevel.STATE, priority=1),
            make_price("high", 200, level=OrgLevel.STATE, priority=5),
        ]
        quote = self.resolver.quote_from(self.designation, prices, self.scope)
        assert quote.override_id == "high"

    def test_newest_wins_full_tie(self):
        prices = [
            make_price("new", 200, level=OrgLevel.STATE, created_at=T0 + timedelta(days=1)),
            make_price("old", 100, level=OrgLevel.STATE, created_at=T0),
        ]
        quote = self.resolver.quote_from(self.designation, prices, self.scope)
        assert quote.override_id == "new"

    def test_naive_timestamps_compare_with_aware(self):
        prices = [
            make_price("aware", 100, level=OrgLevel.STATE, created_at=T0),
            make_price("naive", 200, level=OrgLevel.STATE, created_at=datetime(2025, 6, 1)),
        ]
        quote = self.resolver.quote_from(self.designation, prices, self.scope)
        assert quote.override_id == "naive"

    def test_override_currency_and_validity(self):
        prices = [make_price("p", 500, currency="USD", validity_days=30, level=OrgLevel.STATE)]
        quote = self.resolver.quote_from(self.designation, prices, self.scope)

        assert quote.currency == "USD"
        assert quote.validity_days == 30

    def test_cell_match_beats_mandal_match(self):
        """cell (8) > mandal (3): the cell override wins."""
        scope = Scope(
            cell_id="C",
            designation_id="dsg_1",
            level=OrgLevel.MANDAL,
            state_id="S",
            district_id="D",
            mandal_id="M",
        )
        prices = [make_price("by_cell", 500, cell_id="C"), make_price("by_mandal", 300, mandal_id="M")]

        for ordering in (prices, list(reversed(prices))):
            quote = self.resolver.quote_from(self.designation, ordering, scope)
            assert quote.fee == 500
            assert quote.score == 8
