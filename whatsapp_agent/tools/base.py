"""Capabilities the model may invoke during a conversation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Tool(ABC):
    """A named capability described to the model by a JSON schema.

    Tools with ``uses_sender`` set receive the conversation's sender key as
    a ``sender`` keyword argument; it is never taken from model output.
    """

    name: str
    description: str
    parameters_schema: dict[str, Any]
    uses_sender: bool = False

    @abstractmethod
    async def run(self, **kwargs: Any) -> Any:
        """Run with arguments already checked against ``parameters_schema``."""
