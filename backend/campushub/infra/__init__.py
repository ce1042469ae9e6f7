"""Infrastructure adapters (postgres, redis, auth)."""
