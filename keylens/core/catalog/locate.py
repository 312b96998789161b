"""
Value locator for JSON text.

orjson gives values but no positions. This walks the same text once more
and records where each leaf value starts, keyed by its key path (array
items use their index as segment). Runs only on text orjson accepted.
"""

from typing import Dict, Tuple

import orjson

from ..models import Position
from ..parsing.extractor import LineIndex

_LITERAL_END = set(",}] \t\r\n")


class _JsonLocator:

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.lines = LineIndex(text)
        self.positions: Dict[Tuple[str, ...], Position] = {}

    def skip_ws(self) -> None:
        text = self.text
        while self.pos < len(text) and text[self.pos] in " \t\r\n\ufeff":
            self.pos += 1

    def value(self, path: Tuple[str, ...]) -> None:
        self.skip_ws()
        ch = self.text[self.pos]
        if ch == '{':
            self.obj(path)
        elif ch == '[':
            self.array(path)
        else:
            self.positions[path] = self.lines.position(self.pos)
            if ch == '"':
                self.string()
            else:
                while self.pos < len(self.text) and self.text[self.pos] not in _LITERAL_END:
                    self.pos += 1

    def obj(self, path: Tuple[str, ...]) -> None:
        self.pos += 1
        self.skip_ws()
        if self.text[self.pos] == '}':
            self.pos += 1
            return
        while True:
            self.skip_ws()
            key = self.string()
            self.skip_ws()
            self.pos += 1  # ':'
            self.value(path + (key,))
            self.skip_ws()
            ch = self.text[self.pos]
            self.pos += 1
            if ch == '}':
                return

    def array(self, path: Tuple[str, ...]) -> None:
        self.pos += 1
        self.skip_ws()
        if self.text[self.pos] == ']':
            self.pos += 1
            return
        index = 0
        while True:
            self.value(path + (str(index),))
            index += 1
            self.skip_ws()
            ch = self.text[self.pos]
            self.pos += 1
            if ch == ']':
                return

    def string(self) -> str:
        text = self.text
        start = self.pos
        self.pos += 1
        while text[self.pos] != '"':
            self.pos += 2 if text[self.pos] == '\\' else 1
        self.pos += 1
        return orjson.loads(text[start:self.pos])


def locate_json_values(text: str) -> Dict[Tuple[str, ...], Position]:
    """
    Map key paths of a valid JSON document to value positions.

    Duplicate object keys keep the last position, as the decoded value does.
    """
    locator = _JsonLocator(text)
    try:
        locator.value(())
    except (IndexError, orjson.JSONDecodeError):
        # Positions are best-effort; values never depend on them
        pass
    return locator.positions
