"""Backends de stockage de la file (PostgreSQL, Redis)."""
