"""
Snippet text cleanup.

Declarations are cut out of their context, so their lines are trimmed and
de-indented before being joined. The extraction mode decides whether the
declaration is kept whole, reduced to its body, or reduced to its block
structure.
"""

import logging
from typing import List, Sequence, Tuple

from snippet.config import DEFAULT_BLOCK_ELLIPSIS, DEFAULT_ELLIPSIS_INDENT
from snippet.errors import EmptySpanSetError
from snippet.models import ExtractionMode

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"
SNIPPET_SEPARATOR = "\n\n"


def _is_blank(line: str) -> bool:
    return not line.strip()


def _leading_whitespace(line: str) -> int:
    return len(line) - len(line.lstrip())


def _trim_blank_lines(lines: List[str]) -> Tuple[int, int]:
    start = 0
    while start < len(lines) and _is_blank(lines[start]):
        start += 1
    end = len(lines) - 1
    while end >= start and _is_blank(lines[end]):
        end -= 1
    return start, end


def _select_block_content(lines: List[str]) -> Tuple[int, int]:
    """Select the lines between a declaration's outer braces.

    ``lines`` is modified in place: the header up to the first ``{`` and
    the footer from the last ``}`` are cut off the boundary lines.
    """
    start = next((i for i, line in enumerate(lines) if "{" in line), None)
    end = next((i for i in range(len(lines) - 1, -1, -1) if "}" in lines[i]), None)
    if start is None or end is None or end < start:
        return _trim_blank_lines(lines)

    lines[start] = lines[start][lines[start].index("{") + 1:]
    if _is_blank(lines[start]):
        start += 1

    if end >= start:
        # The cut above may have removed the only closing brace of the line
        brace = lines[end].rfind("}")
        if brace >= 0:
            lines[end] = lines[end][:brace].rstrip()
            if _is_blank(lines[end]):
                end -= 1

    return start, end


def clean_lines(
    lines: Sequence[str],
    mode: ExtractionMode = ExtractionMode.FULL,
    block_ellipsis: str = DEFAULT_BLOCK_ELLIPSIS,
    ellipsis_indent: str = DEFAULT_ELLIPSIS_INDENT,
) -> List[str]:
    """Trim, de-indent and truncate the lines of one declaration.

    Args:
        lines: The declaration's lines, first line including its indentation.
        mode: The extraction mode.
        block_ellipsis: Placeholder body used in block structure mode.
        ellipsis_indent: Indentation of the placeholder body.

    Returns:
        The processed lines.
    """
    lines = list(lines)
    if not lines:
        return []

    if mode is ExtractionMode.CONTENT_ONLY:
        start, end = _select_block_content(lines)
    else:
        start, end = _trim_blank_lines(lines)

    selected = lines[start:end + 1]
    indents = [_leading_whitespace(line) for line in selected if not _is_blank(line)]
    padding = min(indents) if indents else 0

    cleaned: List[str] = []
    for line in selected:
        line = line[padding:] if len(line) > padding else ""

        if mode is ExtractionMode.BLOCK_STRUCTURE_ONLY and "{" in line:
            cleaned.append(line[:line.index("{") + 1])
            cleaned.append(ellipsis_indent + block_ellipsis)
            cleaned.append("}")
            break

        cleaned.append(line.rstrip())

    return cleaned


def build_snippet(
    texts: Sequence[Sequence[str]],
    mode: ExtractionMode = ExtractionMode.FULL,
    block_ellipsis: str = DEFAULT_BLOCK_ELLIPSIS,
    ellipsis_indent: str = DEFAULT_ELLIPSIS_INDENT,
) -> str:
    """Build snippet text from the lines of one or more declarations.

    Each declaration is cleaned independently; aggregated matches are
    separated by exactly one blank line.

    Args:
        texts: Lines of each matched declaration, in source order.
        mode: The extraction mode.
        block_ellipsis: Placeholder body used in block structure mode.
        ellipsis_indent: Indentation of the placeholder body.

    Returns:
        The snippet text.

    Raises:
        EmptySpanSetError: If ``texts`` is empty.
    """
    if not texts:
        raise EmptySpanSetError("Cannot build a snippet from zero declarations")

    parts = [
        LINE_SEPARATOR.join(clean_lines(lines, mode, block_ellipsis, ellipsis_indent))
        for lines in texts
    ]
    logger.debug("Built snippet from %d declaration(s), mode=%s", len(parts), mode.value)
    return SNIPPET_SEPARATOR.join(parts)
