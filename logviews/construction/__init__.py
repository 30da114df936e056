"""
Query construction: column resolution, fast view selection and SQL compilation.
"""
