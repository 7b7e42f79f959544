"""Integration tests that drive the manifest-validator CLI as a subprocess."""
