#!/usr/bin/env python3
"""
Basic usage example for the VEX document MCP server.

Drives the MCP handler directly, without an MCP host, to show the
request/response flow for creating and merging VEX documents. Run it
after `pip install -e .`.
"""

import asyncio
import json

from vexdoc_mcp_server.config.settings import Config
from vexdoc_mcp_server.protocol.schemas import (
    MCPCallToolRequest,
    MCPInitializeRequest,
    MCPListToolsRequest,
)
from vexdoc_mcp_server.server import VexDocMCPServer


def document_from(response):
    """Extract the VEX document JSON from a successful tool call response."""
    text = response.result["content"][0]["text"]
    return json.loads(text.split("\n\n", 1)[1])


async def main():
    """Run basic MCP server walkthrough."""
    print("Starting VEX document MCP server walkthrough")

    config = Config(
        server={"log_level": "DEBUG"},
        vex={"default_author": "Example Security Team"},
    )
    server = VexDocMCPServer(config)

    try:
        await server.start()

        print("\n1. Initialize")
        response = await server.mcp_handler.handle_request(
            MCPInitializeRequest(
                id="init",
                params={
                    "protocolVersion": "2024-11-05",
                    "clientInfo": {"name": "example-client", "version": "1.0.0"},
                    "capabilities": {},
                },
            )
        )
        info = response.result["serverInfo"]
        print(f"   Server: {info['name']} v{info['version']}")

        print("\n2. List tools")
        response = await server.mcp_handler.handle_request(MCPListToolsRequest(id="list"))
        for tool in response.result["tools"]:
            print(f"   - {tool['name']}")

        print("\n3. Create two assessments of the same vulnerability")
        documents = []
        for call_id, arguments in (
            (
                "vendor",
                {
                    "product": "pkg:npm/lodash@4.17.21",
                    "vulnerability": "CVE-2023-1234",
                    "status": "affected",
                    "action_statement": "Upgrade to 4.17.22",
                    "author": "Vendor PSIRT",
                },
            ),
            (
                "internal",
                {
                    "product": "pkg:npm/lodash@4.17.21",
                    "vulnerability": "CVE-2023-1234",
                    "status": "fixed",
                },
            ),
        ):
            response = await server.mcp_handler.handle_request(
                MCPCallToolRequest(
                    id=call_id,
                    params={"name": "create_vex_statement", "arguments": arguments},
                )
            )
            document = document_from(response)
            documents.append(document)
            print(f"   {call_id}: {document['@id']} ({document['statements'][0]['status']})")

        print("\n4. Merge them")
        response = await server.mcp_handler.handle_request(
            MCPCallToolRequest(
                id="merge",
                params={
                    "name": "merge_vex_documents",
                    "arguments": {"documents": documents, "author_role": "Release Manager"},
                },
            )
        )
        merged = document_from(response)
        print(json.dumps(merged, indent=2))

        print("\n5. Rejected input is reported as a tool error")
        response = await server.mcp_handler.handle_request(
            MCPCallToolRequest(
                id="bad",
                params={
                    "name": "create_vex_statement",
                    "arguments": {
                        "product": "pkg:npm/lodash@4.17.21",
                        "vulnerability": "CVE-2023-1234",
                        "status": "not_affected",
                    },
                },
            )
        )
        print(f"   isError={response.result['isError']}")
        print(f"   {response.result['content'][0]['text']}")

    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
