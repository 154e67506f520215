"""Business logic services used by handlers.

Services are imported lazily by handlers so that SQLAlchemy and database
engines are only touched on routes that need them.
"""

# Do NOT import services here - use lazy loading in handlers instead
