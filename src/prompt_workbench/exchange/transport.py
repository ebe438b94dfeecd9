"""
File and clipboard transports used at the import/export boundary.

Both are async ports exchanging plain strings. Local file access runs in a
worker thread; the memory clipboard stands in wherever no system clipboard
is wired up.
"""

import asyncio
from pathlib import Path
from typing import Optional, Protocol, Union


class FileTransport(Protocol):
    """Reads and writes text files."""

    async def read_text(self, path: Path) -> str:
        ...

    async def write_text(self, path: Path, text: str) -> None:
        ...


class ClipboardPort(Protocol):
    """Reads and writes clipboard text."""

    async def read_text(self) -> str:
        ...

    async def write_text(self, text: str) -> None:
        ...


class LocalFileTransport:
    """File transport over the local file system."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    async def read_text(self, path: Union[str, Path]) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding=self.encoding)

    async def write_text(self, path: Union[str, Path], text: str) -> None:
        await asyncio.to_thread(self._write, Path(path), text)

    def _write(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=self.encoding)


class MemoryClipboard:
    """Process-local clipboard."""

    def __init__(self, text: Optional[str] = None):
        self._text = text or ""

    async def read_text(self) -> str:
        return self._text

    async def write_text(self, text: str) -> None:
        self._text = text
