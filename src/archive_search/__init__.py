"""Index and query the member paths of zip archives."""

__version__ = "0.1.0"
