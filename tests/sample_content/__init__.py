"""In-memory key-value content used by the discovery and CLI tests."""
