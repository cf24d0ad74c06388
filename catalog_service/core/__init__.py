"""Domain core: settings, exceptions, models, pagination and dependencies."""
