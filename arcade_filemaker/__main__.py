import sys
from typing import cast

from arcade_mcp_server import MCPApp
from arcade_mcp_server.mcp_app import TransportType

import arcade_filemaker

app = MCPApp(
    name="FileMaker",
    instructions=(
        "Use this server to read and write records in a FileMaker database through the "
        "FileMaker Data API: batch create/update/delete, paginated queries, bulk import and "
        "export, and key-based sync between layouts."
    ),
)

app.add_tools_from_module(arcade_filemaker)


def main() -> None:
    transport = sys.argv[1] if len(sys.argv) > 1 else "stdio"
    host = sys.argv[2] if len(sys.argv) > 2 else "127.0.0.1"
    port = int(sys.argv[3]) if len(sys.argv) > 3 else 8000

    app.run(transport=cast(TransportType, transport), host=host, port=port)


if __name__ == "__main__":
    main()
