"""Command line interface for downloads-organizer."""
