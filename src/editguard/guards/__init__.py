"""Guards for full-document rewrites."""
