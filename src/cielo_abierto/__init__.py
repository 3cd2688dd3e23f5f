"""
Cielo Abierto

Conversational access to NASA's open data, starting with resilient Mars
rover photo retrieval.
"""

from cielo_abierto.__version__ import __version__

__all__ = ["__version__"]
