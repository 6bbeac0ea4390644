"""Source side: screen broadcast and input injection."""
