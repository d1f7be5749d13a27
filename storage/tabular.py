"""Delimited text codec shared by the channel registry file and the event feed."""
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

Table = List[List[str]]


class _State(Enum):
    FIELD = 'field'
    ESCAPE = 'escape'
    QUOTED = 'quoted'


def parse_table(text: str) -> Table:
    """
    Parse delimited text into rows of string fields.

    Commas separate fields and newlines separate rows. Double quotes toggle
    a quoted section in which commas and newlines are kept literally. A
    backslash escapes the next character, with ``\\n`` producing a newline.

    Args:
        text: Raw delimited text

    Returns:
        List of rows, each a list of fields
    """
    table: Table = []
    row: List[str] = []
    field: List[str] = []
    state = _State.FIELD
    resume: Optional[_State] = None

    for char in text:
        if state is _State.FIELD:
            if char == ',':
                row.append(''.join(field))
                field = []
            elif char == '\n':
                row.append(''.join(field))
                field = []
                table.append(row)
                row = []
            elif char == '\\':
                resume = _State.FIELD
                state = _State.ESCAPE
            elif char == '"':
                state = _State.QUOTED
            else:
                field.append(char)
        elif state is _State.ESCAPE:
            field.append('\n' if char == 'n' else char)
            state = resume
            resume = None
        else:
            if char == '\\':
                resume = _State.QUOTED
                state = _State.ESCAPE
            elif char == '"':
                state = _State.FIELD
            else:
                field.append(char)

    if field:
        row.append(''.join(field))
    if row:
        table.append(row)

    return table


def _format_field(field: str) -> str:
    """
    Escape quotes, then wrap the escaped text in quotes if it holds a comma.

    Quoting is keyed off commas only; a bare quote or newline stays unquoted.
    Escaping happens before wrapping, so quotes inside a quoted field stay
    escaped rather than closing the quoted section early.
    """
    text = field.replace('"', '\\"')
    if ',' in text:
        return f'"{text}"'
    return text


def format_table(table: Table) -> str:
    """
    Serialize rows into delimited text.

    Args:
        table: List of rows, each a list of fields

    Returns:
        Delimited text without a trailing newline
    """
    return '\n'.join(
        ','.join(_format_field(field) for field in row)
        for row in table
    )


def load_table(path: Union[str, Path]) -> Table:
    """
    Read and parse a delimited text file.

    Raises:
        OSError: If the file cannot be read
    """
    text = Path(path).read_text(encoding='utf-8')
    return parse_table(text)


def write_table(table: Table, path: Union[str, Path]) -> None:
    """
    Serialize rows and atomically replace the given file.

    The rows are written to a temporary file beside the target which is then
    renamed over it, so a failed write leaves the previous contents intact.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as tmp:
            tmp.write(format_table(table))
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.debug(f"Wrote {len(table)} rows to {path}")
