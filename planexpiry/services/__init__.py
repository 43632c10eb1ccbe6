"""Services for the free plan expiry jobs."""
