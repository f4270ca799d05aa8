"""Command handlers for the bulkup CLI."""
