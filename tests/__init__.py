"""
Datastore SDK Test Suite.

This package contains:
- unit/: Unit tests (no network, no HTTP client)
- integration/: Transaction and client tests against a fake datastore
  served through httpx.MockTransport
"""
