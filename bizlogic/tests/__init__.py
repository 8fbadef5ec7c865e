"""Test suite for the Business Logic Helper backend."""
