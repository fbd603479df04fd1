"""Output schemas for API command results."""
