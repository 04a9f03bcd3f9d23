"""Feature flag engine: runtime toggles with user, group and region overrides."""

__version__ = "0.1.0"
