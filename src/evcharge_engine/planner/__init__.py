"""Charging window search."""
