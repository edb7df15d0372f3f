"""Branch dependency tracking: persisted stacks, validation and PR suggestions."""
