"""
Line parser for background GO mapping files.

Mapping files are exported as comma separated text but are not valid CSV:
GO terms that contain commas are wrapped in double quotes without any escaping,
and proteins without mappings show up as lines starting with two separators.
The rules below decide which lines become associations and must stay exactly
as they are, since a CSV reader would accept and reject different lines.
"""

from typing import List, NamedTuple, Optional

FIELD_SEPARATOR = ","
QUOTE = '"'
NO_PROTEIN_PREFIX = FIELD_SEPARATOR * 2
QUOTED_EMPTY_SUFFIX = QUOTE + FIELD_SEPARATOR


class TermAssociation(NamedTuple):
    """One GO accession / GO term / protein accession record."""

    go_accession: str
    go_term: str
    protein_accession: str


def split_fields(line: str) -> List[str]:
    """
    Split a line on the field separator and drop trailing empty fields.

    Args:
        line: A raw line without its line terminator

    Returns:
        The effective fields, e.g. "a,b," gives ["a", "b"]
    """
    fields = line.split(FIELD_SEPARATOR)
    while fields and fields[-1] == "":
        fields.pop()
    return fields


def _strip_one_quote(text: str) -> str:
    if text.startswith(QUOTE):
        text = text[1:]
    if text.endswith(QUOTE):
        text = text[:-1]
    return text


def parse_association(line: str) -> Optional[TermAssociation]:
    """
    Parse a single (non-header) line of a mapping file.

    Args:
        line: A raw line without its line terminator

    Returns:
        The association, or None when the line does not map a protein
    """
    if line.startswith(NO_PROTEIN_PREFIX):
        return None

    fields = split_fields(line)
    if len(fields) == 3 and not line.endswith(QUOTED_EMPTY_SUFFIX):
        go_accession, go_term, protein_accession = fields
        return TermAssociation(go_accession, go_term.lower(), protein_accession)

    if QUOTE not in line or line.endswith(QUOTED_EMPTY_SUFFIX):
        return None

    first = line.find(FIELD_SEPARATOR)
    last = line.rfind(FIELD_SEPARATOR)
    if first == -1 or first == last:
        return None

    go_accession = line[:first]
    go_term = _strip_one_quote(line[first + 1:last].lower())
    protein_accession = line[last + 1:]
    if not protein_accession:
        return None
    return TermAssociation(go_accession, go_term, protein_accession)
