"""Split a delimited-text payload into indexed, trimmed rows."""
import re
from dataclasses import dataclass

DEFAULT_DELIMITER = ","
BOM = "\ufeff"

# Only CR/LF end a row; other Unicode separators can appear inside free-text fields.
LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RawRow:
    index: int  # 1-based, counted over data rows only
    fields: tuple[str, ...]
    line: str

    def get(self, position: int) -> str:
        """Field at ``position``, or "" when the row is shorter."""
        if position < len(self.fields):
            return self.fields[position]
        return ""


def split_rows(payload: str, has_headers: bool, delimiter: str = DEFAULT_DELIMITER) -> list[RawRow]:
    """Blank lines are dropped before the header is skipped and before indexing.

    A leading byte-order mark is discarded. No quoting is honoured: a field
    that contains the delimiter is split.
    """
    payload = payload.removeprefix(BOM)
    lines = [line for line in LINE_BREAK.split(payload) if line.strip()]
    if has_headers:
        lines = lines[1:]

    return [
        RawRow(
            index=idx,
            fields=tuple(field.strip() for field in line.split(delimiter)),
            line=line,
        )
        for idx, line in enumerate(lines, start=1)
    ]
