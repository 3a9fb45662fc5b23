"""Feature modules: shared foundations, progression and accuracy."""
