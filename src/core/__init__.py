"""
Core domain models, money arithmetic, errors and collaborator ports.

This module contains the foundational building blocks that are independent
of external systems (databases, caches, notification transports).
"""
