"""Data access: DynamoDB repositories and PostgreSQL bootstrap scripts."""
