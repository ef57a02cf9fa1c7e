"""Expression parsing helpers attached to `Parser`."""
