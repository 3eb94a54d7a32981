import logging

from fastmcp import FastMCP

# Nothing here may print to stdout, it carries the MCP stdio stream
mcp = FastMCP("Demo")


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


@mcp.tool()
async def add(a: float, b: float) -> str:
    """Add two numbers.

    Args:
        a: First addend
        b: Second addend

    Returns:
        str: The sum, without a trailing ".0" for whole numbers
    """
    return _format_number(a + b)


@mcp.tool()
async def echo(message: str) -> str:
    """Echo a message back to the caller."""
    return f"Tool echo: {message}"


@mcp.resource("greeting://{name}")
def greeting(name: str) -> str:
    """Personalized greeting"""
    return f"Hello, {name}!"


@mcp.prompt(name="echo")
def echo_prompt(message: str) -> str:
    """Ask the model to process a message."""
    return f"Please process this message: {message}"


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")
