"""API routers for the channelhub service."""
