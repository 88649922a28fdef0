"""FastAPI routes, dependencies and response translation."""
