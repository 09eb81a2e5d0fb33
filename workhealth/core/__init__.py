"""Shared infrastructure: configuration, logging, HTTP client, timezones, errors."""
