"""Database package for engine construction and the key-value table."""
