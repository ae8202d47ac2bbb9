"""Fuel-mix to carbon-intensity conversion."""
