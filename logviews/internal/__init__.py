"""
Planning, listing and the stores they rely on.
"""
