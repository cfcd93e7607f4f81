"""Core library for the Entity Feedback backend."""
