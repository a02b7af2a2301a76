"""Context sources the gatherer can query."""

from .base import ContextSource, ToolCaller, ToolServerSource
from .file_source import FileContextSource
from .lsp_source import LspContextSource
from .memory_source import MemoryContextSource
from .serena_source import SerenaContextSource

__all__ = [
    "ContextSource",
    "ToolCaller",
    "ToolServerSource",
    "FileContextSource",
    "LspContextSource",
    "MemoryContextSource",
    "SerenaContextSource",
]
