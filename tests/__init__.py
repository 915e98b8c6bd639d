"""
Test suite for the certificate constitution engine

Contains:
- tests/unit/          : Unit tests for individual modules
"""
