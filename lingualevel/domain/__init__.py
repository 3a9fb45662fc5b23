"""Domain layer: rich models that own progression rules."""
