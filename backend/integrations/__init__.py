"""External service clients (Plaid, market prices) and token encryption."""
