"""Client-side notification subsystem for a calendar application."""
