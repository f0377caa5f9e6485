"""Framework adapters for Bloom agent tokens."""
