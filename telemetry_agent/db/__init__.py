"""Database package - async engine, sessions, and ORM models."""
