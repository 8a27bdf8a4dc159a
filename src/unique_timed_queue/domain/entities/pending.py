"""Pending record entity."""

import asyncio
from typing import Any

from pydantic import BaseModel, ConfigDict


class PendingRecord(BaseModel):
    """An entry waiting for its admission timer to fire."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    key: str
    value: Any
    timer: asyncio.TimerHandle

    def cancel(self) -> None:
        """Cancel the admission timer."""
        self.timer.cancel()
