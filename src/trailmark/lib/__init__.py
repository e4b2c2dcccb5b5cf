"""Shared helpers: logging, key-value storage, geolocation."""
