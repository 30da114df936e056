"""
Models for authorization
"""

from enum import IntEnum
from typing import FrozenSet, Literal, Union

from pydantic import BaseModel

UNRESTRICTED = "unrestricted"

Scope = Union[Literal["unrestricted"], FrozenSet[int]]


class AccessTier(IntEnum):
    """
    Ordered sensitivity levels gating column visibility.
    """

    PUBLIC = 0
    CUSTOMER = 1
    INTERNAL = 2
    PRIVATE = 3  # never exposed to callers


# Access tier names handed over by the authorization layer
ACCESS_TIER_NAMES = {
    "dev": AccessTier.INTERNAL,
    "internal": AccessTier.INTERNAL,
    "wl": AccessTier.CUSTOMER,
    "customers": AccessTier.CUSTOMER,
}


class AccessContext(BaseModel):
    """
    What a caller may see: which tenants and at which access tier.
    """

    tenant_scope: Scope = UNRESTRICTED
    whitelabel_scope: Scope = UNRESTRICTED
    access_tier_name: str

    model_config = {"frozen": True}

    @property
    def access_tier(self) -> AccessTier:
        """
        Access tier implied by the tier name; unknown names only see public columns.
        """
        return ACCESS_TIER_NAMES.get(self.access_tier_name, AccessTier.PUBLIC)

    def allows_tenant(self, tenant_id: int) -> bool:
        """
        Whether the tenant falls within the caller's scope.
        """
        return self.tenant_scope == UNRESTRICTED or tenant_id in self.tenant_scope
