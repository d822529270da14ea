"""
Tests for seat scope validation and bucket keys.
"""

import pytest

from membership_service.constants.membership import OrgLevel, Zone
from membership_service.core.errors import ErrorCode, ScopeValidationError
from membership_service.services.membership.scope import Scope


def make_scope(level, **geo):
    return Scope(cell_id="cell_1", designation_id="dsg_1", level=level, **geo)


class TestScopeShape:
    def test_national_needs_no_geography(self):
        make_scope(OrgLevel.NATIONAL).validate_shape()
        make_scope(OrgLevel.NATIONAL, country_id="cty_1").validate_shape()

    def test_zone_requires_zone(self):
        with pytest.raises(ScopeValidationError) as exc:
            make_scope(OrgLevel.ZONE).validate_shape()
        assert exc.value.details["field"] == "zone"
        make_scope(OrgLevel.ZONE, zone=Zone.SOUTH).validate_shape()

    def test_state_level_rejects_district(self):
        with pytest.raises(ScopeValidationError) as exc:
            make_scope(OrgLevel.STATE, state_id="st_1", district_id="dst_1").validate_shape()
        assert exc.value.details["field"] == "district_id"

    def test_mandal_requires_full_chain(self):
        with pytest.raises(ScopeValidationError) as exc:
            make_scope(OrgLevel.MANDAL, state_id="st_1", mandal_id="mdl_1").validate_shape()
        assert exc.value.details["field"] == "district_id"
        make_scope(
            OrgLevel.MANDAL, state_id="st_1", district_id="dst_1", mandal_id="mdl_1"
        ).validate_shape()

    def test_zone_not_allowed_below_zone_level(self):
        with pytest.raises(ScopeValidationError):
            make_scope(OrgLevel.DISTRICT, zone=Zone.NORTH, state_id="st_1", district_id="d").validate_shape()

    def test_unknown_level_is_a_validation_error(self):
        with pytest.raises(ScopeValidationError) as exc:
            make_scope("GALACTIC")
        assert exc.value.code == ErrorCode.INVALID_SCOPE
        assert exc.value.status_code == 422

    def test_plain_strings_are_coerced(self):
        scope = make_scope("ZONE", zone="WEST")
        assert scope.level is OrgLevel.ZONE
        assert scope.zone is Zone.WEST


class TestBucketKey:
    def test_bucket_key_is_canonical(self):
        scope = make_scope(OrgLevel.STATE, state_id="st_1")
        assert scope.bucket_key == "cell_1|dsg_1|STATE|-|-|st_1|-|-"

    def test_equal_scopes_share_a_bucket(self):
        a = make_scope("STATE", state_id="st_1")
        b = make_scope(OrgLevel.STATE, state_id="st_1")
        assert a.bucket_key == b.bucket_key

    def test_geography_separates_buckets(self):
        a = make_scope(OrgLevel.STATE, state_id="st_1")
        b = make_scope(OrgLevel.STATE, state_id="st_2")
        assert a.bucket_key != b.bucket_key

    def test_aggregate_key_ignores_designation(self):
        a = Scope(cell_id="cell_1", designation_id="dsg_1", level=OrgLevel.NATIONAL)
        b = Scope(cell_id="cell_1", designation_id="dsg_2", level=OrgLevel.NATIONAL)
        assert a.bucket_key != b.bucket_key
        assert a.aggregate_key == b.aggregate_key == "cell_1|NATIONAL|-|-|-|-|-"

    def test_from_record_round_trips_columns(self):
        scope = make_scope(OrgLevel.ZONE, zone=Zone.EAST, country_id="cty_1")
        rebuilt = Scope.from_record(scope)
        assert rebuilt == scope
