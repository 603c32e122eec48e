"""Canonical option identifiers.

Internally an option is its index (0..3) in the question's option list. Clients
and spreadsheets have used both a bare letter ("B") and a labelled form
("Option B"); conversion happens only here, at the boundary.
"""

from typing import Optional, Sequence, Union

from livequiz.core.errors import ValidationError

OPTION_COUNT = 4
LETTERS = "ABCD"
LABEL_PREFIX = "option"


def option_letter(index: Optional[int]) -> Optional[str]:
    if index is None:
        return None
    return LETTERS[index]


def option_label(index: int) -> str:
    return f"Option {LETTERS[index]}"


def parse_option(value: Union[str, int, None], options: Optional[Sequence[str]] = None) -> Optional[int]:
    """Resolve a client/import supplied option reference to its index.

    Accepts an int index, a letter ("b"), a labelled letter ("Option B") or,
    when ``options`` is given, the exact option text. ``None`` and blank strings
    mean "no selection".
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Unrecognised option {value!r}")
    if isinstance(value, int):
        if 0 <= value < OPTION_COUNT:
            return value
        raise ValidationError(f"Option index must be between 0 and {OPTION_COUNT - 1}")

    raw = str(value).strip()
    if not raw:
        return None
    token = raw
    if token.lower().startswith(LABEL_PREFIX):
        token = token[len(LABEL_PREFIX):].strip()
    if len(token) == 1 and token.upper() in LETTERS:
        return LETTERS.index(token.upper())
    if options:
        for idx, text in enumerate(options):
            if text is not None and str(text).strip() == raw:
                return idx
    raise ValidationError(f"Unrecognised option {raw!r}")
