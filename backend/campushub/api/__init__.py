"""Cross-cutting HTTP helpers and operations endpoints."""
