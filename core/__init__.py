"""Core domain types, events and the recognition pipeline."""
