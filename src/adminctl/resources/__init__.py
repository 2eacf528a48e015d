"""Packaged resources for adminctl."""
