"""Input validation and parsing for subject names and token lists.

All functions raise ``ValidationError`` before anything touches the store,
so a malformed batch is rejected as a whole.
"""

from typing import List

from ..exceptions import ValidationError
from ..models.subject import MAX_SUBJECT_NAME_LENGTH

# Characters that separate tokens in a token list (besides any whitespace).
TOKEN_SEPARATORS = frozenset(",;")


def validate_subject_name(name: str) -> str:
    """Return the stripped name, or raise if it is empty or too long."""
    if not isinstance(name, str):
        raise ValidationError("Subject name must be a string", field="name")
    normalized = name.strip()
    if not normalized:
        raise ValidationError("Subject name cannot be empty", field="name")
    if len(normalized) > MAX_SUBJECT_NAME_LENGTH:
        raise ValidationError(
            f"Subject name cannot be longer than {MAX_SUBJECT_NAME_LENGTH} characters",
            field="name",
        )
    # Subject lists are one name per line, so a line break would make the name unreachable.
    if not normalized.isprintable():
        raise ValidationError(
            "Subject name cannot contain line breaks or control characters",
            field="name",
        )
    return normalized


def validate_token_value(value: str) -> str:
    """A token is exactly one alphabetic character, in any script."""
    if not isinstance(value, str) or len(value) != 1 or not value.isalpha():
        raise ValidationError(
            f"Token must be exactly one letter, got {value!r}",
            field="token",
        )
    return value


def parse_subject_list(text: str) -> List[str]:
    """Parse one subject name per line.

    Blank lines are ignored and duplicates collapse to their first
    occurrence. Any over-long name rejects the whole list.
    """
    names: List[str] = []
    seen = set()
    for line in (text or "").splitlines():
        name = line.strip()
        if not name:
            continue
        if len(name) > MAX_SUBJECT_NAME_LENGTH:
            preview = name[:32] + "..."
            raise ValidationError(
                f"Subject name '{preview}' cannot be longer than "
                f"{MAX_SUBJECT_NAME_LENGTH} characters",
                field="subjects",
            )
        if not name.isprintable():
            raise ValidationError(
                f"Subject name {name[:32]!r} cannot contain control characters",
                field="subjects",
            )
        if name not in seen:
            seen.add(name)
            names.append(name)
    return names


def parse_token_list(text: str) -> List[str]:
    """Parse letters separated by whitespace, ',' or ';'.

    Every non-separator character is its own token, so ``"AB, c"`` yields
    ``["A", "B", "c"]``. Anything that is not a letter rejects the list.
    """
    tokens: List[str] = []
    seen = set()
    for char in text or "":
        if char.isspace() or char in TOKEN_SEPARATORS:
            continue
        if not char.isalpha():
            raise ValidationError(
                f"Only letters and separators (space, ',', ';') are allowed, got {char!r}",
                field="tokens",
            )
        if char not in seen:
            seen.add(char)
            tokens.append(char)
    return tokens
