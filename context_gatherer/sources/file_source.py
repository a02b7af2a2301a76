"""Context source that reads files named in the query."""

import logging
import re
from pathlib import Path
from typing import List, Optional

import aiofiles

from ..core.models import ContentChunk, GatherOptions
from .base import ContextSource

logger = logging.getLogger(__name__)

# e.g. "check src/index.py", "file:package.json", "`app/main.py`", "'setup.cfg'"
PATH_PATTERNS = [
    re.compile(r'(?:^|\s)([a-zA-Z0-9_\-./]+\.[a-zA-Z]{2,})'),
    re.compile(r'file:(\S+)', re.IGNORECASE),
    re.compile(r'`([^`]+\.[a-zA-Z]{2,})`'),
    re.compile(r'"([^"]+\.[a-zA-Z]{2,})"'),
    re.compile(r"'([^']+\.[a-zA-Z]{2,})'"),
]

SMALL_FILE_CHARS = 10000
LARGE_FILE_CHARS = 50000


class FileContextSource(ContextSource):
    """Reads local files whose paths appear in the query."""

    name = "file"

    def __init__(self, working_directory: Optional[str] = None):
        """
        Initialize file source.

        Args:
            working_directory: Directory that query paths are resolved against
                (defaults to the process working directory)
        """
        self.working_directory = Path(working_directory or Path.cwd())

    async def is_available(self) -> bool:
        return True

    async def gather(self, query: str, options: GatherOptions) -> List[ContentChunk]:
        if not options.include_file_content:
            return []

        logger.debug("Gathering file context", extra={"source": self.name, "query": query})

        chunks = []
        for filepath in self.extract_file_paths(query):
            absolute_path = self.resolve_path(filepath)
            if absolute_path is None:
                logger.warning("Skipping path outside working directory: %s", filepath,
                               extra={"source": self.name, "filepath": filepath})
                continue
            try:
                async with aiofiles.open(absolute_path, 'r', encoding='utf-8') as f:
                    content = await f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read file %s: %s", filepath, e,
                               extra={"source": self.name, "filepath": filepath})
                continue

            chunks.append(ContentChunk(
                source=self.name,
                content=content,
                relevance=self.calculate_relevance(filepath, query, content),
                metadata={
                    "filepath": filepath,
                    "absolute_path": str(absolute_path),
                    "size": len(content)
                }
            ))
            logger.debug("File read successfully",
                         extra={"source": self.name, "filepath": filepath, "size": len(content)})

        return chunks

    def resolve_path(self, filepath: str) -> Optional[Path]:
        """
        Join a query path onto the working directory.

        Absolute paths are treated as relative to the working directory.
        Returns None when the result escapes it (e.g. through "..").
        """
        candidate = self.working_directory / filepath.lstrip("/")
        try:
            candidate.resolve().relative_to(self.working_directory.resolve())
        except ValueError:
            return None
        return candidate

    @staticmethod
    def extract_file_paths(query: str) -> List[str]:
        """Extract candidate file paths from a query, first occurrence order."""
        paths = []
        for pattern in PATH_PATTERNS:
            for match in pattern.finditer(query):
                path = match.group(1)
                if path and path not in paths:
                    paths.append(path)
        return paths

    @staticmethod
    def calculate_relevance(filepath: str, query: str, content: str) -> float:
        """Score a file: named in the query and small is best, huge is penalized."""
        relevance = 0.5

        if filepath.lower() in query.lower():
            relevance += 0.3

        if len(content) < SMALL_FILE_CHARS:
            relevance += 0.1

        if len(content) > LARGE_FILE_CHARS:
            relevance -= 0.2

        return max(0.0, min(1.0, relevance))
