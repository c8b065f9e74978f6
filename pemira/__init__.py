"""Services, request handlers and models for running a campus election."""

__version__ = "0.1.0"