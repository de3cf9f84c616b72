"""``request_cleaning`` tool.

Callers (an MCP client, an LLM, the HTTP adapter) invoke ``execute`` with the
customer's name, phone and address. The tool hands the request to the
dispatcher and returns its result.
"""

from __future__ import annotations

from typing import Any, Hashable, Optional

from concierge.dispatcher import RequestDispatcher
from concierge.models.booking import BookingRequest, DispatchResult


class RequestCleaningTool:
    """Book a home cleaning in the service region.

    Parameters accepted from the caller:

    * ``name``    -- Customer name.
    * ``phone``   -- Phone number, 10-digit US format.
    * ``address`` -- Service address.
    """

    def __init__(self, dispatcher: RequestDispatcher, region_name: str = "San Francisco") -> None:
        self._dispatcher = dispatcher
        self._region_name = region_name

    @property
    def name(self) -> str:
        return "request_cleaning"

    @property
    def description(self) -> str:
        return f"Request cleaning service in {self._region_name}"

    @property
    def parameters_schema(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "name": {
                    "type": "string",
                    "description": "Customer name",
                    "minLength": 2,
                    "maxLength": 100,
                },
                "phone": {
                    "type": "string",
                    "description": "Phone number (10-digit US format)",
                    "pattern": "^[0-9\\s\\-\\(\\)\\+]+$",
                },
                "address": {
                    "type": "string",
                    "description": f"Service address in {self._region_name}",
                    "minLength": 10,
                    "maxLength": 200,
                },
            },
            "required": ["name", "phone", "address"],
        }

    def describe(self) -> dict[str, Any]:
        """Tool listing entry: name, description and input schema."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.parameters_schema,
        }

    async def execute(self, client_id: Optional[Hashable] = None, **kwargs: Any) -> DispatchResult:
        """Dispatch one booking request built from ``kwargs``."""
        request = BookingRequest(
            name=kwargs.get("name"),
            phone=kwargs.get("phone"),
            address=kwargs.get("address"),
        )
        return await self._dispatcher.dispatch(request, client_id)
