"""Cross-cutting concerns: configuration, logging, and exceptions."""
