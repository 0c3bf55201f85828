"""Core services: platform context, paths, configuration and file access."""
