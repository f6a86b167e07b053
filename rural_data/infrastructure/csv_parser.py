"""A lenient parser for the delimited exports of government data portals."""

import logging
from typing import List

from ..application.domain import RawRow, RowParser
from ..application.exceptions import ParseError


class CsvRowParser(RowParser):
    """
    An adapter that implements the RowParser port for comma-separated text.

    The first non-blank line is the header. A double quote toggles the
    quoted state, so separators inside quotes are kept as text; quote
    characters themselves never appear in the output. Rows whose field
    count differs from the header's are dropped rather than misaligned.
    """

    def __init__(self, separator: str = ","):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.separator = separator

    def split_line(self, line: str) -> List[str]:
        """Splits one line into trimmed field values."""
        values = []
        current = []
        in_quotes = False

        for char in line:
            if char == '"':
                in_quotes = not in_quotes
            elif char == self.separator and not in_quotes:
                values.append("".join(current).strip())
                current = []
            else:
                current.append(char)

        values.append("".join(current).strip())
        return values

    def parse(self, text: str) -> List[RawRow]:
        """
        Parses delimited text into header-keyed rows.

        Args:
            text: The full content of a downloaded file.

        Returns:
            One mapping per well-formed data line, in file order.

        Raises:
            ParseError: If the text has no header line.
        """

        lines = [line for line in text.splitlines() if line.strip()]
        if not lines:
            raise ParseError("Empty CSV file")

        headers = self.split_line(lines[0])
        rows = []
        dropped = 0

        for line in lines[1:]:
            values = self.split_line(line)
            if len(values) != len(headers):
                dropped += 1
                continue
            rows.append(dict(zip(headers, values)))

        if dropped:
            self.logger.warning(
                f"Dropped {dropped} rows with a field count other than "
                f"{len(headers)}."
            )
        return rows
