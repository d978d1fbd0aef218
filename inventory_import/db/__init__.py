"""Storage collaborators (read-only existing-value lookups)."""
