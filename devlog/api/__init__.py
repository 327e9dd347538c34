"""HTTP routes, schemas and dependencies."""
