"""Pure validation functions over catalog data."""
