"""Service layer built on the integrations."""
