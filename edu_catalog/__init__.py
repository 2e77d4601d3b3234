"""Client-side data access and state sync for the educational resource catalog."""

__version__ = "0.1.0"
