"""
Unit tests for the role hierarchy and role comparisons.
"""

import pytest

from cms_access import roles as R
from cms_access.models import Principal


def who(*roles):
    return Principal(id="u1", roles=frozenset(roles))


# ── Tests: hierarchy ─────────────────────────────────────────────────

def test_hierarchy_has_each_role_once():
    assert len(R.ROLE_HIERARCHY) == len(set(R.ROLE_HIERARCHY))
    assert R.ROLE_HIERARCHY[0] == R.SYSTEM
    assert R.ROLE_HIERARCHY[-1] == R.FREE


def test_index_of_unknown_is_worse_than_lowest():
    assert R.index_of("nobody") == R.NOT_FOUND
    assert R.index_of("nobody") > R.index_of(R.FREE)


def test_groupings_nest():
    assert R.ADMIN_ROLES < R.STAFF_ROLES < R.CREATOR_ROLES < R.PUBLIC_ROLES
    assert R.PUBLIC_ROLES == R.ALL_ROLES


# ── Tests: normalize_roles ───────────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    (None, set()),
    ("", set()),
    ("Staff", {"staff"}),
    (["creator", "dj", "creator"], {"creator", "dj"}),
    ([{"role": "admin"}, "free", None, 3, {"name": "x"}], {"admin", "free"}),
    ({"role": "admin"}, set()),
    (42, set()),
])
def test_normalize_roles(raw, expected):
    assert R.normalize_roles(raw) == expected


# ── Tests: has_role_at_or_above ──────────────────────────────────────

def test_creator_is_not_staff_but_is_free():
    principal = who(R.CREATOR)
    assert R.has_role_at_or_above(principal, R.STAFF) is False
    assert R.has_role_at_or_above(principal, R.FREE) is True


def test_empty_roles_fail_closed_even_against_lowest():
    assert R.has_role_at_or_above(who(), R.FREE) is False


def test_missing_principal_fails_closed():
    assert R.has_role_at_or_above(None, R.FREE) is False
    assert R.has_any_role(None, [R.FREE]) is False


def test_unrecognized_roles_are_ignored():
    assert R.has_role_at_or_above(who("wizard"), R.FREE) is False
    assert R.has_role_at_or_above(who("wizard", R.EDITOR), R.INDUSTRY) is True


def test_unknown_required_role_denies():
    assert R.has_role_at_or_above(who(R.SYSTEM), "wizard") is False


def test_best_role_counts():
    assert R.has_role_at_or_above(who(R.FREE, R.MODERATOR), R.STAFF) is False
    assert R.has_role_at_or_above(who(R.FREE, R.STAFF), R.STAFF) is True


def test_hierarchy_monotonicity():
    for i, higher in enumerate(R.ROLE_HIERARCHY):
        for lower in R.ROLE_HIERARCHY[i + 1:]:
            assert R.has_role_at_or_above(who(higher), lower) is True
            assert R.has_role_at_or_above(who(lower), higher) is False


def test_principal_with_raw_role_list_is_normalized():
    class Loose:
        roles = ["Staff"]

    assert R.has_role_at_or_above(Loose(), R.MODERATOR) is True


def test_mixed_case_role_set_is_normalized():
    principal = Principal(id="x", roles=frozenset({"Admin", " Staff "}))
    assert principal.roles == frozenset({R.ADMIN, R.STAFF})
    assert R.has_role_at_or_above(principal, R.ADMIN) is True

    class Loose:
        roles = frozenset({"Admin"})

    assert R.is_admin_tier(Loose()) is True


# ── Tests: has_any_role / has_role ───────────────────────────────────

def test_has_any_role_is_plain_membership():
    assert R.has_any_role(who(R.DJ), [R.DJ, R.VJ]) is True
    assert R.has_any_role(who(R.ADMIN), [R.DJ]) is False
    assert R.has_any_role(who(), [R.FREE]) is False


def test_has_role_admin_override():
    assert R.has_role(who(R.SUPER_ADMIN), [R.DJ]) is True
    assert R.has_role(who(R.STAFF), [R.DJ]) is False
    assert R.has_role(None, [R.DJ]) is False
