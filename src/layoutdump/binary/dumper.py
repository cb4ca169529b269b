from __future__ import annotations
import logging
from typing import Callable, NoReturn, Optional

from .codecs.bytecursor import ByteCursor, SourceLike
from .emitter import Emitter
from .errors import DumpError
from ..models.options import DumpOptions

log = logging.getLogger(__name__)


class BaseDumper:
    """Shared plumbing of the GDS2 and OASIS dumpers: cursor, emitter and diagnostics."""

    def __init__(
        self,
        source: SourceLike | ByteCursor,
        *,
        options: Optional[DumpOptions] = None,
        write_line: Callable[[str], None] = print,
        warn: Optional[Callable[[str], None]] = None,
    ):
        self.options = options or DumpOptions()
        self._cur = source if isinstance(source, ByteCursor) else ByteCursor(source)
        self._cur.on_warning = self.warn
        self._warn_sink = warn
        self._emitter = Emitter(
            self._cur, write_line, width=self.options.width, short_mode=self.options.short_mode
        )
        self.cell: str | None = None
        self._cur.start_recording()

    def warn(self, msg: str) -> None:
        text = f"{msg} (position={self._cur.tell()})"
        if self._warn_sink is not None:
            self._warn_sink(text)
        else:
            log.warning("%s", text)

    def error(self, msg: str) -> NoReturn:
        raise DumpError(msg, self._cur.tell(), self.cell)

    def emit(self, text: str) -> None:
        self._emitter.emit(text)

    def dump(self) -> None:
        try:
            self._dump()
        except DumpError as e:
            if e.cell is None:
                e.cell = self.cell
            raise
        finally:
            self._cur.stop_recording()

    def _dump(self) -> None:
        raise NotImplementedError
