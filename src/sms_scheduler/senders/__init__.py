"""Sender implementations (the pluggable delivery capability)."""
