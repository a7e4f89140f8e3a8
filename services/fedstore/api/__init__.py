"""fedstore HTTP API."""
