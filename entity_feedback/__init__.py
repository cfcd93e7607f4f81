"""Entity Feedback backend.

Records ratings and free-text responses against catalog entities and serves
them back filtered to what the caller can see in the catalog.
"""

__version__ = "0.1.0"
