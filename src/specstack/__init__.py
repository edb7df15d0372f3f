"""Branch-dependency tracking and PR suggestions for spec-driven stacked branches."""
