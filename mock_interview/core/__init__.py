"""Core modules: configuration, errors, authentication and database."""
