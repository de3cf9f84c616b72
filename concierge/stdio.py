"""Stdio transport for desktop MCP clients.

Reads one JSON-RPC 2.0 message per line from stdin and writes one response
per line to stdout. Logs go to stderr so they never mix with the protocol
stream.

  ← {"jsonrpc":"2.0","id":1,"method":"initialize","params":{...}}
  → {"jsonrpc":"2.0","id":1,"result":{"protocolVersion":..., "serverInfo":...}}
  ← {"jsonrpc":"2.0","method":"notifications/initialized"}
  ← {"jsonrpc":"2.0","id":2,"method":"tools/call",
     "params":{"name":"request_cleaning","arguments":{...}}}
  → {"jsonrpc":"2.0","id":2,"result":{"content":[{"type":"text","text":...}],
     "isError":false}}

Messages without an ``id`` are notifications and get no reply.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any, Optional, TextIO

from dotenv import load_dotenv

from concierge import __version__
from concierge.config import Settings
from concierge.dispatcher import RequestDispatcher
from concierge.logging_setup import configure_logging
from concierge.notifiers.resend import ResendNotifier
from concierge.tools.request_cleaning import RequestCleaningTool

log = logging.getLogger("concierge.stdio")

MCP_PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "IRL"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601

MSG_UNKNOWN_TOOL = "Unknown tool requested."


def _error(msg_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


def _text_result(text: str, is_error: bool) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


class StdioServer:
    """Serves the ``request_cleaning`` tool over line-delimited JSON-RPC."""

    def __init__(
        self,
        tool: RequestCleaningTool,
        client_id: str = "stdio",
        max_message_bytes: int = 10_000,
    ) -> None:
        self._tool = tool
        self._client_id = client_id
        self._max_message_bytes = max_message_bytes

    async def handle(self, message: Any) -> Optional[dict[str, Any]]:
        """Return the response for one decoded message, or None for notifications."""
        if not isinstance(message, dict):
            return _error(None, INVALID_REQUEST, "Invalid Request")

        msg_id = message.get("id")
        method = message.get("method")
        if message.get("jsonrpc") != "2.0" or not isinstance(method, str):
            return _error(msg_id, INVALID_REQUEST, "Invalid Request")
        if "id" not in message:
            log.debug("Notification %s", method)
            return None

        params = message.get("params") if isinstance(message.get("params"), dict) else {}

        if method == "initialize":
            result = {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            }
        elif method == "ping":
            result = {}
        elif method == "tools/list":
            result = {"tools": [self._tool.describe()]}
        elif method == "tools/call":
            result = await self._call_tool(params)
        else:
            log.warning("Unknown method %r", method)
            return _error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        return {"jsonrpc": "2.0", "id": msg_id, "result": result}

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        if params.get("name") != self._tool.name:
            log.warning("Unknown tool requested: %r", params.get("name"))
            return _text_result(MSG_UNKNOWN_TOOL, is_error=True)

        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}
        fields = {k: arguments.get(k) for k in ("name", "phone", "address")}
        outcome = await self._tool.execute(client_id=self._client_id, **fields)
        return _text_result(outcome.message, is_error=not outcome.ok)

    async def handle_line(self, line: str) -> Optional[str]:
        """Decode one input line and encode its reply, if any."""
        line = line.strip()
        if not line:
            return None
        if len(line.encode("utf-8")) > self._max_message_bytes:
            return json.dumps(_error(None, INVALID_REQUEST, "Request too large"))
        try:
            message = json.loads(line)
        except ValueError:
            return json.dumps(_error(None, PARSE_ERROR, "Parse error"))
        response = await self.handle(message)
        return json.dumps(response) if response is not None else None

    async def serve(self, reader: TextIO, writer: TextIO) -> None:
        """Answer messages from ``reader`` until it reaches end of file."""
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, reader.readline)
            if not line:
                break
            reply = await self.handle_line(line)
            if reply is not None:
                writer.write(reply + "\n")
                writer.flush()
        log.info("Input closed, shutting down")


async def _run(settings: Settings) -> None:
    notifier = ResendNotifier(
        api_key=settings.resend_api_key,
        api_url=settings.resend_api_url,
        timeout=settings.notify_timeout_seconds,
    )
    try:
        dispatcher = RequestDispatcher.from_settings(settings, notifier)
        tool = RequestCleaningTool(dispatcher, region_name=settings.region_name)
        server = StdioServer(tool, max_message_bytes=settings.max_body_bytes)
        log.info("%s stdio server running", SERVER_NAME)
        await server.serve(sys.stdin, sys.stdout)
    finally:
        await notifier.close()


def main() -> None:
    """Validate configuration and serve the tool over stdin/stdout."""
    load_dotenv()
    settings = Settings()
    configure_logging(settings.log_level)

    try:
        warnings = settings.validate_startup()
    except ValueError as e:
        log.error("Configuration error: %s", e)
        sys.exit(1)
    for warning in warnings:
        log.warning(warning)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
