"""API routers for the Entity Feedback backend."""
