"""Shared helpers: logging, errors, validation, caching and polling."""
