"""
Context completion for cell editors.

A textual heuristic: candidates are the distinct tokens of the cell being
edited plus every known cell identity and its ``Out['<identity>']`` form,
filtered by the prefix under the cursor. Scope, imports and types are never
inspected.
"""
import io
import logging
import tokenize
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Structural tokens carry no completion value
_SKIP_TYPES = {
    tokenize.NEWLINE, tokenize.NL, tokenize.INDENT, tokenize.DEDENT,
    tokenize.ENDMARKER, tokenize.ENCODING,
}
_PUNCTUATION = set("()[]{},:;.")


@dataclass
class Suggestion:
    """One completion candidate and the span of text it replaces."""
    text: str
    start: int
    end: int
    kind: str = "context"


@dataclass
class _Token:
    text: str
    start: int
    end: int


def _line_offsets(text: str) -> List[int]:
    # Same line splitting as the tokenizer: only "\n" ends a line
    offsets = [0]
    for line in io.StringIO(text).readlines():
        offsets.append(offsets[-1] + len(line))
    return offsets


def scan_tokens(text: str) -> List[_Token]:
    """Lexical tokens of ``text`` with character offsets, as far as it tokenizes."""
    offsets = _line_offsets(text)
    tokens: List[_Token] = []
    try:
        for tok in tokenize.generate_tokens(io.StringIO(text).readline):
            if tok.type in _SKIP_TYPES or not tok.string.strip():
                continue
            if tok.type == tokenize.OP and tok.string in _PUNCTUATION:
                continue
            (srow, scol), (erow, ecol) = tok.start, tok.end
            if srow > len(offsets) or erow > len(offsets):
                continue
            tokens.append(_Token(tok.string, offsets[srow - 1] + scol, offsets[erow - 1] + ecol))
    except (tokenize.TokenError, SyntaxError) as e:
        # Incomplete code is normal while typing; keep what was read
        logger.debug(f"Stopped tokenizing at {e}")
    return tokens


def _stem_at(tokens: List[_Token], cursor_pos: int) -> Tuple[str, int, int]:
    for tok in tokens:
        if tok.start < cursor_pos <= tok.end:
            return tok.text, tok.start, tok.end
    return "", cursor_pos, cursor_pos


class TokenIndex:
    """Builds the candidate pool for one completion request."""

    def candidates(self, text: str, known_identities: Iterable[str]) -> List[str]:
        """Every distinct candidate in first-discovery order."""
        seen = {}
        for tok in scan_tokens(text):
            seen.setdefault(tok.text, None)
        for identity in known_identities:
            if not identity:
                continue
            seen.setdefault(identity, None)
            seen.setdefault(f"Out['{identity}']", None)
        return list(seen)

    def complete(self, text: str, cursor_pos: Optional[int],
                 known_identities: Iterable[str]) -> List[Suggestion]:
        """
        Suggest completions for the token under the cursor.

        Args:
            text: Full text of the cell being edited
            cursor_pos: Character offset of the cursor (end of text when None)
            known_identities: Identities of the notebook's cells, in cell order

        Returns:
            Candidates that start with the stem and differ from it. An empty
            stem returns the whole pool.
        """
        if cursor_pos is None or cursor_pos > len(text):
            cursor_pos = len(text)
        cursor_pos = max(cursor_pos, 0)

        stem, start, end = _stem_at(scan_tokens(text), cursor_pos)
        return [
            Suggestion(text=candidate, start=start, end=end)
            for candidate in self.candidates(text, known_identities)
            if candidate.startswith(stem) and candidate != stem
        ]


token_index = TokenIndex()
