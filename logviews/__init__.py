"""
Query planning core for multi-tenant log analytics views.
"""
