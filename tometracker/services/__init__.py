"""
Services Package

Business logic kept apart from HTTP handling, so it can be tested without
a running app.

Current services:
- security.py: Password hashing, token pairs and session cookies
- authorization.py: Role hierarchy and access decisions
- inventory.py: Borrow/return state machine over the copy ledger
- stocking.py: Putting copies of books on library shelves
- rate_limiter.py: Rate limiting with slowapi
"""
