"""Processed-token cache and CSV export."""
