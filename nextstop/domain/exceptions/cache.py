class CacheConstructionError(ValueError):
    """Raised for an invalid cache TTL or key (caller programming error)."""
