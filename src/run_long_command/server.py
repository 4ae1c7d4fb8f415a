from typing import Annotated

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent
from pydantic import Field

from run_long_command.runner import CommandRunner

SERVER_NAME = "run-long-command-server"
TOOL_NAME = "run_long_command"
TOOL_DESCRIPTION = (
    "Executes a long-running shell command in the background and notifies "
    "Gemini when finished."
)


def _text_result(text: str, is_error: bool = False) -> CallToolResult:
    # Returned as-is so error text reaches the client without a prefix
    return CallToolResult(
        content=[TextContent(type="text", text=text)],
        isError=is_error,
    )


def build_server(runner: CommandRunner | None = None) -> FastMCP:
    """Creates the MCP server exposing the ``run_long_command`` tool."""
    runner = runner or CommandRunner()
    server = FastMCP(SERVER_NAME)

    @server.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)
    async def run_long_command(
        command: Annotated[str, Field(description="The shell command to execute.")],
    ) -> CallToolResult:
        if not command or not command.strip():
            return _text_result("Error: command must not be empty.", is_error=True)

        result = await runner.start(command)
        return _text_result(result.text, is_error=result.is_error)

    return server
