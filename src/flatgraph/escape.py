"""Character escaping with reversible private-use-area remapping.

An :class:`Escape` escapes a set of delimiter characters by prefixing them
with an introducer (``\\`` by default). :meth:`Escape.map` then turns each
escaped delimiter into a code point of the Unicode private use area so the
text can be scanned for real delimiters, and :meth:`Escape.demap` restores
the delimiters afterwards::

    esc = Escape("[,]")
    esc.escape("a,b")               # 'a\\,b'
    esc.demap(esc.map("a\\,b"))     # 'a,b'
"""

from __future__ import annotations

# Start of the Unicode private use area (E000-F8FF).
PUA = 0xE000


class Escape:
    def __init__(self, escape_chars: str, start_of_escape: str = "\\") -> None:
        if not escape_chars:
            raise ValueError("No characters were provided for escaping")
        if len(start_of_escape) != 1:
            raise ValueError("The start of escape must be a single character")
        self.start_of_escape = start_of_escape
        self.escape_chars = escape_chars
        self._ordinals: dict[str, int] = {}
        for i, c in enumerate(escape_chars):
            if c in self._ordinals:
                raise ValueError(
                    f"Character {c!r} has been specified more than once for escaping"
                )
            self._ordinals[c] = i

    def escape(self, text: str | None) -> str | None:
        """Return *text* with every configured delimiter preceded by the introducer."""
        if text is None:
            return None
        out: list[str] = []
        for c in text:
            if c in self._ordinals:
                out.append(self.start_of_escape)
            out.append(c)
        return "".join(out)

    def map(self, text: str | None, replacements: list[str] | None = None) -> str | None:
        """Replace each escaped delimiter with a private-use code point.

        The code point is ``PUA + position`` of the delimiter in the
        configured set, or ``replacements[position]`` when supplied. An
        introducer followed by anything else, or left dangling at the end of
        the text, is kept as is.
        """
        if text is None:
            return None
        out: list[str] = []
        in_escape = False
        for c in text:
            if in_escape:
                pos = self._ordinals.get(c)
                if pos is None:
                    out.append(self.start_of_escape)
                    out.append(c)
                elif replacements is not None and pos < len(replacements):
                    out.append(replacements[pos])
                else:
                    out.append(chr(PUA + pos))
                in_escape = False
            elif c == self.start_of_escape:
                in_escape = True
            else:
                out.append(c)
        if in_escape:
            out.append(self.start_of_escape)
        return "".join(out)

    def demap(self, text: str | None) -> str | None:
        """Restore the delimiters of a mapped text, without their introducer."""
        if text is None:
            return None
        size = len(self.escape_chars)
        out: list[str] = []
        for c in text:
            pos = ord(c) - PUA
            if 0 <= pos < size:
                c = self.escape_chars[pos]
            out.append(c)
        return "".join(out)

    def __repr__(self) -> str:
        return f"Escape({self.escape_chars!r}, {self.start_of_escape!r})"
