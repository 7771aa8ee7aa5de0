"""Framework adapters for serving diagnostics."""
