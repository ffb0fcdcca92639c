"""HTTP clients for external generation providers and storage."""
