"""
Models for view requests.
"""

from typing import Any

from pydantic import BaseModel


class QueryRequest(BaseModel):
    """
    A request to plan the log view of a tenant for a query expression tree.
    """

    log_type: str
    expression_tree: Any
    tenant_id: int
