"""Event handlers supplied by the host application.


File: events.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from dataclasses import dataclass
from typing import Callable

from deployex.status import Diagnostics


@dataclass
class EventHandlers:
    """Optional callbacks for the four interpreter events."""

    on_notification: Callable[[str], None] | None = None
    on_message: Callable[[str], None] | None = None
    on_success: Callable[[], None] | None = None
    on_failure: Callable[[Diagnostics], None] | None = None

    def notification(self, text: str) -> None:
        if self.on_notification is not None:
            self.on_notification(text)

    def message(self, text: str) -> None:
        if self.on_message is not None:
            self.on_message(text)

    def success(self) -> None:
        if self.on_success is not None:
            self.on_success()

    def failure(self, diagnostics: Diagnostics) -> None:
        if self.on_failure is not None:
            self.on_failure(diagnostics)
