"""Domain types, errors and the recognition pipeline."""
