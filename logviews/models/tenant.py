"""
Models for the tenant directory.
"""

from enum import StrEnum

from pydantic import BaseModel


class OwnerKind(StrEnum):
    """
    Tenant roles. Agencies own advertisers; each log type's rows belong to one role.
    """

    AGENCY = "agency"
    ADVERTISER = "advertiser"


class Tenant(BaseModel):
    """
    A tenant as listed by the tenant directory.
    """

    id: int
    name: str
