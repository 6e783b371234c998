"""Sample ring buffer and overlapping window extraction."""
