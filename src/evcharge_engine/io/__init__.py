"""File formats and configuration loading."""
