"""Cross-cutting utilities: structured logging and operator alerts."""
