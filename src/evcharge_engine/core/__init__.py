"""Domain constants, schemas and validation."""
