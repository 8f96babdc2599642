"""
Pytest configuration and fixtures for VEX document MCP server tests.
"""

import copy

import pytest

from vexdoc_mcp_server.config.settings import Config, ServerConfig, VexConfig
from vexdoc_mcp_server.protocol.handlers import MCPHandler
from vexdoc_mcp_server.tools.create_vex_statement import CreateVexStatementTool
from vexdoc_mcp_server.tools.merge_vex_documents import MergeVexDocumentsTool
from vexdoc_mcp_server.vex.client import VexClient

CONTEXT = "https://openvex.dev/ns/v0.2.0"


def build_document(statements, doc_id="https://example.com/vex/doc-1", author="Vendor Security"):
    """Build a raw OpenVEX document as it arrives in tool arguments."""
    return {
        "@context": CONTEXT,
        "@id": doc_id,
        "author": author,
        "timestamp": "2024-01-15T10:00:00Z",
        "version": 1,
        "statements": statements,
    }


def build_statement(vulnerability, product, status, **fields):
    statement = {
        "vulnerability": {"name": vulnerability},
        "products": [{"@id": product}],
        "status": status,
    }
    statement.update(fields)
    return statement


@pytest.fixture
def test_config():
    """Create a test configuration."""
    return Config(
        version="0.1.0-test",
        server=ServerConfig(log_level="DEBUG"),
        vex=VexConfig(default_author="Test Security Team"),
    )


@pytest.fixture
def vex_client():
    return VexClient(default_author="Test Security Team")


@pytest.fixture
def vendor_document():
    """Vendor view: lodash affected, express not affected."""
    return build_document(
        [
            build_statement(
                "CVE-2023-1234",
                "pkg:npm/lodash@4.17.21",
                "affected",
                action_statement="Upgrade to 4.17.22",
            ),
            build_statement(
                "CVE-2023-5678",
                "pkg:npm/express@4.18.2",
                "not_affected",
                justification="vulnerable_code_not_present",
            ),
        ],
        doc_id="https://vendor.example.com/vex/1",
        author="Vendor Security",
    )


@pytest.fixture
def internal_document():
    """Internal view: lodash fixed, an extra nginx statement."""
    return build_document(
        [
            build_statement("CVE-2023-1234", "pkg:npm/lodash@4.17.21", "fixed"),
            build_statement(
                "CVE-2024-0001",
                "pkg:docker/nginx@1.20.1",
                "under_investigation",
            ),
        ],
        doc_id="https://internal.example.com/vex/7",
        author="Internal AppSec",
    )


@pytest.fixture
def sample_documents(vendor_document, internal_document):
    return [copy.deepcopy(vendor_document), copy.deepcopy(internal_document)]


@pytest.fixture
def create_tool(vex_client):
    return CreateVexStatementTool(vex_client)


@pytest.fixture
def merge_tool(vex_client):
    return MergeVexDocumentsTool(vex_client)


@pytest.fixture
def handler(create_tool, merge_tool):
    """MCP handler with both VEX tools registered."""
    mcp_handler = MCPHandler()
    mcp_handler.register_tool(create_tool)
    mcp_handler.register_tool(merge_tool)
    return mcp_handler


@pytest.fixture
def make_document():
    """Factory for raw OpenVEX documents."""
    return build_document


@pytest.fixture
def make_statement():
    """Factory for raw OpenVEX statements."""
    return build_statement
