"""OPA policy console: proxy API and permission sync for Open Policy Agent."""

__version__ = "0.1.0"
