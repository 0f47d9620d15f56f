"""FastAPI adapter for the policy core."""
