"""Statement and declaration parsing helpers attached to `Parser`."""
