"""LinguaLevel: XP and leveling progression engine for language learners."""

__version__ = "0.1.0"
