"""Feature packages (flags, health, metrics)."""
