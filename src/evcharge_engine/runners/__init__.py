"""Entry points tying providers, builder and planner together."""
