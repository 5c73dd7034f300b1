"""Command line client for the public service complaint portal"""

__version__ = "1.0.0"
