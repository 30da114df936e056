"""
Models for log view catalogs, requests and plans.
"""
