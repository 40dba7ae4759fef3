"""Session-level event plumbing."""
