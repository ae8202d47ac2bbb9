"""Fuel-mix and carbon-intensity providers."""
