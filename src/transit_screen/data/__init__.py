"""Configuration, upstream client, normalization and caching."""
