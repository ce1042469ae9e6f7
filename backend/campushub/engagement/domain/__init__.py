"""Domain layer for campus engagement workflows."""
