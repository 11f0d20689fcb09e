"""
Test suite for Supplier Price Check.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_comparison_service.py -v
"""
