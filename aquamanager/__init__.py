"""
AQUAMANAGER Core API

Maintenance task lifecycle service for aquarium keepers.
"""
