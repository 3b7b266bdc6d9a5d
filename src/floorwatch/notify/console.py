# src/floorwatch/notify/console.py
from __future__ import annotations
import sys
from typing import Optional, TextIO

class ConsoleNotifier:
    """Prints the batched message instead of delivering it (dry runs)."""
    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    async def start(self):
        return None

    async def stop(self):
        return None

    async def send(self, text: str) -> None:
        print(text, file=self._stream or sys.stdout, flush=True)
