"""Protocols implemented by adapters and consumed by the domain layer."""
