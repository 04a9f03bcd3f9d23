"""Core building blocks shared by every feature: settings, exceptions, database."""
