"""
datacore - client-side data caching, request deduplication and virtual windowing.
"""
__version__ = "0.1.0"
