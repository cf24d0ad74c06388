"""HTTP features: one package per route group."""
