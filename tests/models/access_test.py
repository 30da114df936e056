"""
Tests for ``logviews.models.access``.
"""

from logviews.models.access import UNRESTRICTED, AccessContext, AccessTier


def test_access_tiers() -> None:
    """
    Tier names map onto ordered tiers, unknown names only see public columns.
    """
    assert AccessContext(access_tier_name="dev").access_tier == AccessTier.INTERNAL
    assert AccessContext(access_tier_name="internal").access_tier == AccessTier.INTERNAL
    assert AccessContext(access_tier_name="wl").access_tier == AccessTier.CUSTOMER
    assert AccessContext(access_tier_name="customers").access_tier == AccessTier.CUSTOMER
    assert AccessContext(access_tier_name="guest").access_tier == AccessTier.PUBLIC
    assert AccessTier.PUBLIC < AccessTier.CUSTOMER < AccessTier.INTERNAL < AccessTier.PRIVATE


def test_allows_tenant() -> None:
    """
    Tenant scopes are either unrestricted or an explicit set.
    """
    assert AccessContext(access_tier_name="wl").tenant_scope == UNRESTRICTED
    assert AccessContext(access_tier_name="wl").allows_tenant(123)
    scoped = AccessContext(access_tier_name="wl", tenant_scope=frozenset([1, 2]))
    assert scoped.allows_tenant(2)
    assert not scoped.allows_tenant(3)
