"""
dazzle-crud: generated CRUD operations with nested entity resolution.
"""

__version__ = "0.1.0"
