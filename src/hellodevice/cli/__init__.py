"""
Command-line interface for HelloDevice.
"""

from .hellodevice import main, create_parser, setup_logging, HelloDevice

__all__ = ["main", "create_parser", "setup_logging", "HelloDevice"]
