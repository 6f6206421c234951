"""API Gateway handlers."""
