"""
VEX Document MCP Server

A Model Context Protocol server that lets MCP hosts author OpenVEX
statements and merge OpenVEX documents.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config.settings import Config, load_config
from .server import VexDocMCPServer

__all__ = [
    "VexDocMCPServer",
    "Config",
    "load_config",
    "__version__",
    "__license__",
]
