"""
In-process caches for tenant directory lookups.
"""
