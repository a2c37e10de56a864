"""Command-line interface: trades ingest | history | analytics | health."""
