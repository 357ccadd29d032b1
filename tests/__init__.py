"""
Test Suite for the TomeTracker API

Test Organization:
- conftest.py: Shared fixtures (test database, client, users, stock)
- test_security.py: Password hashing, token pairs, cookies
- test_authorization.py: Role hierarchy and access decisions
- test_inventory.py: Borrow/return state machine
- test_inventory_concurrency.py: Racing borrows and returns across threads
- test_stocking.py: Adding copies and stocking new libraries
- test_auth.py: /api/v1/auth endpoints
- test_loans.py: /api/v1/users and /api/v1/books endpoints
- test_admin.py: /api/v1/admin endpoints

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_inventory.py

    # Run with verbose output
    pytest -v
"""
