"""Integration tests for mealdeal.

These tests require a PostgreSQL database (TEST_DATABASE_URL).

Run with: pytest -m integration
"""
