"""Durable storage for pending scrobbles."""
