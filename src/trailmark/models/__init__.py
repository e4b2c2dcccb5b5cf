"""Session records and their persistence."""
