"""HTTP clients for the Gamma and CLOB APIs, rate limiting, error kinds."""
