"""ASGI application: factory, lifespan, middleware and composition root."""
