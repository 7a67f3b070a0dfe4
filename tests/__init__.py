"""
Test suite for the commerce settlement engine

Contains:
- tests/unit/          : Unit tests for individual modules
"""
