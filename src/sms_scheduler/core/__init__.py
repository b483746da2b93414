"""Core ports, shared state and error types."""
