"""Feature blueprints mounted under /api."""
