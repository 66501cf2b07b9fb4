"""
Unit tests for active license selection.
"""

import uuid

import pytest

from shared.errors import InvalidInputError, NotFoundError
from service_licensing.app.licenses.models import License, StorableLicense
from service_licensing.app.licenses.selector import (
    Absent, Found, is_eligible, select_active, select_active_from_storables
)


NOW = 1_750_000_000


def make_license(organization_id, valid_from, valid_until, key=None):
    return License(
        id=uuid.uuid4(),
        key=key or f"key-{valid_from}-{valid_until}",
        organization_id=organization_id,
        plan_name="ENTERPRISE",
        status="VALID",
        valid_from=valid_from,
        valid_until=valid_until
    )


class TestSelectActive:
    """Test cases for select_active."""

    def test_empty(self, organization_id):
        selection = select_active([], organization_id, NOW)

        assert selection == Absent(organization_id)

    def test_latest_start_wins(self, organization_id):
        older = make_license(organization_id, 100, -1)
        newer = make_license(organization_id, 200, -1)

        assert select_active([older, newer], organization_id, NOW) == Found(newer)
        assert select_active([newer, older], organization_id, NOW) == Found(newer)

    def test_expired_never_selected(self, organization_id):
        current = make_license(organization_id, 100, -1)
        expired = make_license(organization_id, 200, NOW - 1)

        selection = select_active([current, expired], organization_id, NOW)

        assert isinstance(selection, Found)
        assert selection.license is current

    def test_expiry_at_now_excluded(self, organization_id):
        license = make_license(organization_id, 100, NOW)

        assert select_active([license], organization_id, NOW) == Absent(organization_id)

    def test_expiry_after_now_included(self, organization_id):
        license = make_license(organization_id, 100, NOW + 1)

        assert select_active([license], organization_id, NOW) == Found(license)

    def test_unstarted_license_ignored(self, organization_id):
        unstarted = make_license(organization_id, 0, -1)

        assert select_active([unstarted], organization_id, NOW) == Absent(organization_id)

    def test_tie_keeps_first(self, organization_id):
        first = make_license(organization_id, 100, -1, key="first")
        second = make_license(organization_id, 100, -1, key="second")

        selection = select_active([first, second], organization_id, NOW)

        assert selection.license.key == "first"

    def test_accepts_generator(self, organization_id):
        licenses = (make_license(organization_id, start, -1) for start in (300, 100, 200))

        selection = select_active(licenses, organization_id, NOW)

        assert selection.license.valid_from == 300


class TestIsEligible:
    """Test cases for is_eligible."""

    @pytest.mark.parametrize("valid_from,valid_until,expected", [
        (100, -1, True),
        (100, NOW + 60, True),
        (100, NOW, False),
        (100, 0, False),
        (0, -1, False),
    ])
    def test_eligibility(self, organization_id, valid_from, valid_until, expected):
        license = make_license(organization_id, valid_from, valid_until)

        assert is_eligible(license, NOW) is expected


class TestAbsent:
    """Test cases for Absent."""

    def test_raise_for_absence(self, organization_id):
        with pytest.raises(NotFoundError) as exc_info:
            Absent(organization_id).raise_for_absence()

        assert exc_info.value.message == f"no active license found for the organization {organization_id}"
        assert exc_info.value.status_code == 404


class TestSelectActiveFromStorables:
    """Test cases for select_active_from_storables."""

    def _storable(self, organization_id, data):
        return StorableLicense(id=uuid.uuid4(), key=f"key-{uuid.uuid4().hex}", data=data, org_id=organization_id)

    def test_selects_from_rows(self, organization_id):
        rows = [
            self._storable(organization_id, {"status": "VALID", "plan": {"name": "TEAMS"},
                                             "valid_from": 100, "valid_until": -1}),
            self._storable(organization_id, {"status": "VALID", "plan": {"name": "ENTERPRISE"},
                                             "valid_from": 200, "valid_until": -1}),
        ]

        selection = select_active_from_storables(rows, organization_id, NOW)

        assert isinstance(selection, Found)
        assert selection.license.id == rows[1].id
        assert selection.license.plan_name == "ENTERPRISE"

    def test_unparseable_row_aborts(self, organization_id):
        rows = [
            self._storable(organization_id, {"status": "VALID", "plan": {"name": "TEAMS"},
                                             "valid_from": 100, "valid_until": -1}),
            self._storable(organization_id, {"status": "VALID"}),
        ]

        with pytest.raises(InvalidInputError) as exc_info:
            select_active_from_storables(rows, organization_id, NOW)

        assert exc_info.value.message == "plan key is missing"
