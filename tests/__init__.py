"""
Provider Management - Test Suite

This package contains all tests for the application.

Structure:
    unit/: Unit tests for individual components
    integration/: Integration tests for component interactions
    
Running Tests:
    # Run all tests
    pytest
    
    # Run with coverage
    pytest --cov=.
    
    # Run specific test file
    pytest tests/unit/test_search.py
    
    # Run with verbose output
    pytest -v
"""
