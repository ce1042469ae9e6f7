"""CampusHub backend package."""
