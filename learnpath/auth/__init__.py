"""Authentication and role checks for API callers."""
