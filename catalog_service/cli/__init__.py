"""Command line interface (``catalog-service``)."""
