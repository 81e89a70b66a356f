"""
AQUAMANAGER Core API - Notifications Module

Reminder preferences, notification timing and reminder delivery.
"""
