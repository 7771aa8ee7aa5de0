"""Adapters connecting the core to files, streams, databases and frameworks."""
