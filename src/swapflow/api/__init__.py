"""HTTP API for conversion routing."""
