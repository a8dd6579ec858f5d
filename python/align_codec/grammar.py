"""Grammar checking for cigar-like alignment strings.

Most cigar dialects are a run of ``(length, operator)`` groups that differ
only in three respects:

* whether the length comes before or after the operator letter,
* whether a length of ``1`` may be left out,
* whether groups are separated by a single space.

:func:`validate` checks a string against any combination of those three
settings and reports the first operator at fault.  :func:`cigar_tokens`
applies the fixed combination (plus the operator alphabet) for a named
format and returns the resolved ``(letter, length)`` pairs, which the
parsers in :mod:`align_codec.parsers` turn into canonical operations.

Exonerate CIGAR and VULGAR put spaces on *both* sides of the operator, so
they are checked with their own group patterns instead.

Examples
--------
>>> validate('33M13I52M10I1980MII', True, True, False)
>>> cigar_tokens(AlignFormat.CIGAR_BAM, '8M3D22M')
[('M', 8), ('D', 3), ('M', 22)]
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import NamedTuple

from align_codec.errors import (
    GrammarError,
    UnimplementedFormatError,
    UnsupportedOperatorError,
)
from align_codec.model import AlignFormat

_log = logging.getLogger(__name__)


class CigarGrammar(NamedTuple):
    """One member of the cigar grammar family."""

    digits_before_operator: bool
    may_omit_unit_length: bool
    space_separated: bool


# Operator letters each format may contain.  Letters outside these sets are
# grammatically fine but rejected with UnsupportedOperatorError.
FORMAT_OPERATORS: MappingProxyType = MappingProxyType(
    {
        AlignFormat.CIGAR_EXONERATE: frozenset('MIDFR'),
        AlignFormat.GAP_GFF3: frozenset('MIDFR'),
        AlignFormat.CIGAR_ENSEMBL: frozenset('MID'),
        AlignFormat.CIGAR_BAM: frozenset('MIDNXSPH'),
        AlignFormat.VULGAR_EXONERATE: frozenset('MCGN53ISF'),
    }
)

FORMAT_GRAMMARS: MappingProxyType = MappingProxyType(
    {
        AlignFormat.CIGAR_ENSEMBL: CigarGrammar(True, True, False),
        AlignFormat.CIGAR_BAM: CigarGrammar(True, True, False),
        AlignFormat.GAP_GFF3: CigarGrammar(False, False, True),
    }
)

# Ensembl strings ending in a digit are written operator first ("M8D3M22").
_ENSEMBL_OPERATOR_FIRST = CigarGrammar(False, True, False)

_DIGITS_RE = re.compile(r'[0-9]+')
_EXONERATE_GROUP_RE = re.compile(r'([A-Za-z]) +([0-9]+)')
_VULGAR_GROUP_RE = re.compile(r'([A-Za-z0-9]) +([0-9]+) +([0-9]+)')
_SEPARATOR_RE = re.compile(r' +')


def _is_operator_char(c: str) -> bool:
    return c.isascii() and c.isalpha()


def _is_alnum(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _is_digits(s: str) -> bool:
    return _DIGITS_RE.fullmatch(s) is not None


def _check_ends(text: str) -> None:
    if not text:
        raise GrammarError(text, 'alignment string is empty')
    if not _is_alnum(text[0]):
        raise GrammarError(text, 'has non-operator or non-digit character at start')
    if not _is_alnum(text[-1]):
        raise GrammarError(text, 'has non-operator and non-digit character at end')


def _field_length(
    field: str,
    digits_before_operator: bool,
    may_omit_unit_length: bool,
    space_separated: bool,
    edge: bool,
) -> int:
    """Resolve the length held in one operator's field, or 0 if invalid.

    *edge* is true for the field that touches the end of the string: the
    first field when digits precede operators, the last one otherwise.
    """
    if not field:
        if not space_separated:
            return 1 if may_omit_unit_length else 0
        return 1 if (may_omit_unit_length and edge) else 0

    if len(field) == 1:
        if field == ' ':
            return 1 if (space_separated and may_omit_unit_length) else 0
        if _is_digits(field) and (not space_separated or edge):
            return int(field)
        return 0

    digits = field
    if space_separated and not edge:
        if digits_before_operator:
            if field[0] != ' ':
                return 0
            digits = field[1:]
        else:
            if field[-1] != ' ':
                return 0
            digits = field[:-1]
    if not _is_digits(digits):
        return 0
    return int(digits)


def tokenize(
    text: str,
    digits_before_operator: bool,
    may_omit_unit_length: bool,
    space_separated: bool,
) -> list[tuple[str, int]]:
    """Validate *text* and return its ``(operator, length)`` pairs.

    Parameters
    ----------
    text : str
        Alignment string to check.
    digits_before_operator : bool
        ``True`` for ``8M`` style, ``False`` for ``M8`` style.
    may_omit_unit_length : bool
        Whether a missing length means 1.
    space_separated : bool
        Whether groups are separated by exactly one space.

    Returns
    -------
    list[tuple[str, int]]
        One ``(letter, length)`` pair per operator, in string order.

    Raises
    ------
    GrammarError
        On the first violation.  ``op_index`` is set when a specific
        operator's length field is at fault.
    """
    _check_ends(text)
    if digits_before_operator and not _is_operator_char(text[-1]):
        raise GrammarError(text, 'has non-operator character at end')
    if not digits_before_operator and not _is_operator_char(text[0]):
        raise GrammarError(text, 'has non-operator character at start')

    positions = [i for i, c in enumerate(text) if _is_operator_char(c)]
    if not positions:
        raise GrammarError(text, 'contains no operators')

    n_ops = len(positions)
    tokens: list[tuple[str, int]] = []
    for i, pos in enumerate(positions):
        if digits_before_operator:
            lo = positions[i - 1] + 1 if i > 0 else 0
            hi = pos
            edge = i == 0
        else:
            lo = pos + 1
            hi = positions[i + 1] if i < n_ops - 1 else len(text)
            edge = i == n_ops - 1
        field = text[lo:hi]
        length = _field_length(
            field,
            digits_before_operator,
            may_omit_unit_length,
            space_separated,
            edge,
        )
        if not length:
            raise GrammarError(
                text,
                f'invalid length field {field!r} for operator {text[pos]!r}',
                op_index=i,
            )
        tokens.append((text[pos], length))
    return tokens


def validate(
    text: str,
    digits_before_operator: bool,
    may_omit_unit_length: bool,
    space_separated: bool,
) -> None:
    """Check *text* against one member of the cigar grammar family.

    See :func:`tokenize` for the parameters.

    Raises
    ------
    GrammarError
        If *text* does not follow the grammar.
    """
    tokenize(text, digits_before_operator, may_omit_unit_length, space_separated)


def _tokenize_groups(text: str, group_re: re.Pattern, what: str) -> list[tuple]:
    """Split a space-separated run of *group_re* matches into tuples."""
    _check_ends(text)
    tokens: list[tuple] = []
    pos = 0
    while True:
        m = group_re.match(text, pos)
        if m is None:
            raise GrammarError(text, f'expected {what} at offset {pos}', op_index=len(tokens))
        letter, *numbers = m.groups()
        tokens.append((letter, *(int(n) for n in numbers)))
        pos = m.end()
        if pos == len(text):
            return tokens
        sep = _SEPARATOR_RE.match(text, pos)
        if sep is None:
            raise GrammarError(
                text,
                f'missing space before offset {pos}',
                op_index=len(tokens),
            )
        pos = sep.end()


def _check_alphabet(fmt: AlignFormat, text: str, letters: list[str]) -> None:
    allowed = FORMAT_OPERATORS[fmt]
    for i, letter in enumerate(letters):
        if letter not in allowed:
            raise UnsupportedOperatorError(text, letter, op_index=i)


def cigar_tokens(fmt: AlignFormat | str, text: str) -> list[tuple[str, int]]:
    """Validate a cigar-family string and return its operator/length pairs.

    Parameters
    ----------
    fmt : AlignFormat or str
        One of the CIGAR formats or GFF3 ``Gap``.
    text : str
        The alignment string.

    Returns
    -------
    list[tuple[str, int]]
        ``(letter, length)`` pairs in string order, letters as written
        (no remapping to canonical operators happens here).

    Raises
    ------
    GrammarError
        If the string is malformed.
    UnsupportedOperatorError
        If a letter is outside the format's alphabet.
    UnimplementedFormatError
        If *fmt* is not a cigar-family format.
    """
    fmt = AlignFormat.from_name(fmt)
    if fmt is AlignFormat.CIGAR_EXONERATE:
        tokens = _tokenize_groups(text, _EXONERATE_GROUP_RE, 'operator, spaces, length')
    elif fmt is AlignFormat.GAP_GFF3:
        try:
            tokens = tokenize(text, *FORMAT_GRAMMARS[fmt])
        except GrammarError:
            # Gap values are also written exonerate style ("M 8 D 3").
            if _EXONERATE_GROUP_RE.match(text) is None:
                raise
            tokens = _tokenize_groups(text, _EXONERATE_GROUP_RE, 'operator, spaces, length')
    elif fmt is AlignFormat.CIGAR_ENSEMBL:
        grammar = FORMAT_GRAMMARS[fmt]
        if text and _is_digits(text[-1]):
            grammar = _ENSEMBL_OPERATOR_FIRST
        tokens = tokenize(text, *grammar)
    elif fmt is AlignFormat.CIGAR_BAM:
        tokens = tokenize(text, *FORMAT_GRAMMARS[fmt])
    else:
        raise UnimplementedFormatError(fmt, 'cigar validation')

    for i, (letter, length) in enumerate(tokens):
        if not length:
            raise GrammarError(text, f'zero length for operator {letter!r}', op_index=i)
    _check_alphabet(fmt, text, [letter for letter, _ in tokens])
    _log.debug('validated %s string %r: %d operator(s)', fmt.value, text, len(tokens))
    return tokens


def vulgar_tokens(text: str) -> list[tuple[str, int, int]]:
    """Validate an exonerate VULGAR operation string.

    Parameters
    ----------
    text : str
        ``op query_len target_len`` triplets separated by spaces, e.g.
        ``'M 10 10 G 0 3 M 5 5'``.

    Returns
    -------
    list[tuple[str, int, int]]
        ``(letter, query_length, target_length)`` triplets.

    Raises
    ------
    GrammarError
        If the string is malformed.
    UnsupportedOperatorError
        If a letter is outside the VULGAR alphabet.
    """
    tokens = _tokenize_groups(text, _VULGAR_GROUP_RE, 'operator and two lengths')
    _check_alphabet(AlignFormat.VULGAR_EXONERATE, text, [t[0] for t in tokens])
    _log.debug('validated VULGAR string %r: %d triplet(s)', text, len(tokens))
    return tokens


def validate_format(fmt: AlignFormat | str, text: str) -> None:
    """Check that *text* is a well-formed alignment string for *fmt*.

    Raises
    ------
    GrammarError
        If the string is malformed.
    UnsupportedOperatorError
        If a letter is outside the format's alphabet.
    UnimplementedFormatError
        For formats with no grammar (ACEDB gaps).
    """
    fmt = AlignFormat.from_name(fmt)
    if fmt is AlignFormat.VULGAR_EXONERATE:
        vulgar_tokens(text)
    else:
        cigar_tokens(fmt, text)
