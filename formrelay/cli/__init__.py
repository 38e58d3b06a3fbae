"""formrelay command-line interface."""
