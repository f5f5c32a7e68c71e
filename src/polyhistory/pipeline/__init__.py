"""Export pipeline and event order book lookup."""
