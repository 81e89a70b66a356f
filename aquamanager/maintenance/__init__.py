"""
AQUAMANAGER Core API - Maintenance Module

Task classification, recurrence and display ordering.
"""
