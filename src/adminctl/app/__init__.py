"""Application services: registry, help, script bridge and built-in commands."""
