"""Style injection host."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StyleHost(Protocol):
    """Applies and removes style sheets in the host."""

    def inject(self, style_id: str, location: str) -> None: ...

    def remove(self, style_id: str) -> None: ...


class StyleSheetRegistry:
    """In-memory style host: tracks which style sheet is active under which id."""

    def __init__(self):
        self._sheets: dict[str, str] = {}

    def inject(self, style_id: str, location: str) -> None:
        self._sheets[style_id] = location

    def remove(self, style_id: str) -> None:
        self._sheets.pop(style_id, None)

    def active(self) -> dict[str, str]:
        return dict(self._sheets)
