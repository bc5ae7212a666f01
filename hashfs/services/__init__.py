"""Service layer for HashFS commands."""
