"""Provider adapters and the property resolution services."""
