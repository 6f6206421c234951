"""Lambda handlers for the tenant onboarding services."""
