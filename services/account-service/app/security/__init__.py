"""Password hashing, bearer tokens and request authentication."""
