"""Keep a local table of Yu-Gi-Oh! card records in sync with ygocdb.com."""

__version__ = "0.1.0"
