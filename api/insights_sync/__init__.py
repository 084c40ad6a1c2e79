"""
Sincronizacion selectiva MongoDB -> Meilisearch.
"""

__version__ = "0.1.0"
