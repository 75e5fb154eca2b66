from typing import Iterable, List, Optional, Tuple
import logging

from layerchat.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Ordered tool table; reconfiguration swaps the whole tuple."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: Tuple[Tool, ...] = self._validate(tools)

    @staticmethod
    def _validate(tools: Iterable[Tool]) -> Tuple[Tool, ...]:
        snapshot = tuple(tools)
        names = [tool.name for tool in snapshot]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate tool names: {sorted(duplicates)}")
        return snapshot

    @property
    def tools(self) -> Tuple[Tool, ...]:
        return self._tools

    def __iter__(self):
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> Optional[Tool]:
        for tool in self._tools:
            if tool.name == name:
                return tool
        return None

    def replace(self, tools: Iterable[Tool]) -> None:
        self._tools = self._validate(tools)
        logger.info(f"Tool registry replaced: {self.names()}")

    def names(self) -> List[str]:
        return [tool.name for tool in self._tools]
