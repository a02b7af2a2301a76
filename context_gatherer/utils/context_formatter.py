"""
Formatter that renders a ContextBundle as a single prompt-ready string.
"""

from typing import List
from ..core.models import ContextBundle

SECTION_SEPARATOR = "\n\n---\n\n"


def format_for_model(bundle: ContextBundle) -> str:
    """
    Render a bundle as markdown sections for a language model.

    Sections appear in a fixed order and only when non-empty: code context,
    file contents, project memory, LSP information, then one section per
    additional source in insertion order.

    Args:
        bundle: Bundle produced by the gatherer

    Returns:
        Formatted context, or an empty string when the bundle has no content
    """
    sections: List[str] = []

    if bundle.code_context:
        sections.append("## Code Context\n" + "\n\n".join(bundle.code_context))

    if bundle.file_contents:
        file_section = ["## File Contents"]
        for filepath, content in bundle.file_contents.items():
            file_section.append(f"### {filepath}\n```\n{content}\n```")
        sections.append("\n".join(file_section))

    if bundle.memory_context:
        sections.append("## Project Memory\n" + "\n\n".join(bundle.memory_context))

    if bundle.lsp_context:
        sections.append("## LSP Information\n" + "\n\n".join(bundle.lsp_context))

    for source, items in bundle.additional_info.items():
        if items:
            sections.append(f"## {source}\n" + "\n\n".join(items))

    return SECTION_SEPARATOR.join(sections)
