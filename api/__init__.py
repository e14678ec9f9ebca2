"""HTTP surface over the cascade core."""
