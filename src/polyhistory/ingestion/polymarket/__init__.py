"""Polymarket API clients."""
