"""Intelligence module - AI agents and workflow providers."""
