"""Packaged reputation data (trusted, verified, and popular extensions)."""
