"""Infrastructure: HTTP transport, caching, pacing and listing clients."""
