"""Routers for the dev server."""
