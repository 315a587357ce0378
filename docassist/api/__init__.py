"""HTTP layer: routes, request/response schemas and middleware."""
