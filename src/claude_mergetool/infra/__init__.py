"""Process and filesystem helpers."""
