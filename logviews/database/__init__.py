"""
Cache store schema.
"""
