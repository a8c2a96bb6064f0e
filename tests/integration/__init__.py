"""Integration tests for the transaction manager and client over a mock HTTP transport."""
