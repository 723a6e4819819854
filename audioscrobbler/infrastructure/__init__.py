"""Infrastructure: HTTP transport, persistence, credentials and CLI."""
