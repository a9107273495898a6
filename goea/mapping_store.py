import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from goea.association_parser import parse_association
from goea.errors import MappingFileError

logger = logging.getLogger(__name__)

MAPPINGS_SUFFIX = ".go_mappings"
DOMAINS_SUFFIX = ".go_domains"


class MappingIndex:
    """
    Background GO mappings indexed by protein and by GO term.

    Built once per mapping file by :func:`load` and never modified afterwards.
    """

    def __init__(
        self,
        protein_to_terms: Dict[str, Tuple[str, ...]],
        term_to_accession: Dict[str, str],
        total_term_usage: Dict[str, int],
        total_background_proteins: int,
        name: str = "",
    ) -> None:
        """
        Args:
            protein_to_terms: Protein accession to the GO term keys it maps to
            term_to_accession: GO term key to GO accession
            total_term_usage: GO term key to number of background associations
            total_background_proteins: Population size used for the statistics
            name: Name of the mapping set, usually the file stem
        """
        self._protein_to_terms = MappingProxyType(dict(protein_to_terms))
        self._term_to_accession = MappingProxyType(dict(term_to_accession))
        self._total_term_usage = MappingProxyType(dict(sorted(total_term_usage.items())))
        self.total_background_proteins: int = total_background_proteins
        self.name = name

    @property
    def protein_to_terms(self) -> Mapping[str, Tuple[str, ...]]:
        return self._protein_to_terms

    @property
    def term_to_accession(self) -> Mapping[str, str]:
        return self._term_to_accession

    @property
    def total_term_usage(self) -> Mapping[str, int]:
        """GO term key to background association count, in ascending key order."""
        return self._total_term_usage

    @property
    def accepted_records(self) -> int:
        return sum(self._total_term_usage.values())

    @property
    def distinct_protein_count(self) -> int:
        return len(self._protein_to_terms)

    @property
    def term_count(self) -> int:
        return len(self._total_term_usage)

    def terms_for(self, protein_accession: str) -> Tuple[str, ...]:
        """Return the GO term keys of a protein, empty if it is not mapped."""
        return self._protein_to_terms.get(protein_accession, ())

    def has_protein(self, protein_accession: str) -> bool:
        return protein_accession in self._protein_to_terms


def load(raw_lines: Iterable[str], name: str = "") -> MappingIndex:
    """
    Build a mapping index from the lines of a GO mapping file.

    The first line is a header and is always skipped. Lines that do not map a
    protein are ignored without error.

    Args:
        raw_lines: The lines of the mapping file, with or without line terminators
        name: Name of the mapping set

    Returns:
        The mapping index
    """
    protein_to_terms: Dict[str, List[str]] = {}
    term_to_accession: Dict[str, str] = {}
    total_term_usage: Dict[str, int] = {}
    total_background_proteins = 0
    skipped = 0

    lines = iter(raw_lines)
    next(lines, None)

    for line in lines:
        association = parse_association(line.rstrip("\r\n"))
        if association is None:
            skipped += 1
            continue

        go_term = association.go_term
        protein_terms = protein_to_terms.setdefault(association.protein_accession, [])
        if go_term not in protein_terms:
            protein_terms.append(go_term)
        term_to_accession[go_term] = association.go_accession
        total_term_usage[go_term] = total_term_usage.get(go_term, 0) + 1
        # counts associations rather than distinct proteins
        total_background_proteins += 1

    logger.info(
        f"Loaded {total_background_proteins} GO associations covering "
        f"{len(total_term_usage)} terms and {len(protein_to_terms)} proteins"
    )
    if skipped:
        logger.debug(f"Skipped {skipped} lines without a protein mapping")

    return MappingIndex(
        {protein: tuple(terms) for protein, terms in protein_to_terms.items()},
        term_to_accession,
        total_term_usage,
        total_background_proteins,
        name=name,
    )


def load_mapping_file(mapping_file_path: Union[str, Path]) -> MappingIndex:
    """
    Load a GO mapping file from disk.

    Args:
        mapping_file_path: Path to the .go_mappings file

    Returns:
        The mapping index

    Raises:
        MappingFileError: If the file does not exist
    """
    mapping_path = Path(mapping_file_path)
    if not mapping_path.is_file():
        raise MappingFileError(f'Mapping file "{mapping_path.name}" not found!')

    logger.info(f"Loading GO mappings from {mapping_path}")
    with open(mapping_path, "r", encoding="utf-8") as f:
        return load(f, name=mapping_path.name.split(".")[0])


def list_mapping_files(directory: Union[str, Path]) -> List[Path]:
    """
    List the GO mapping files available in a directory.

    Args:
        directory: Directory holding the .go_mappings files

    Returns:
        Sorted paths of the mapping files, empty if the directory does not exist
    """
    directory_path = Path(directory)
    if not directory_path.is_dir():
        logger.warning(f"GO mapping directory not found: {directory_path}")
        return []
    return sorted(
        f for f in directory_path.iterdir() if f.is_file() and f.name.endswith(MAPPINGS_SUFFIX)
    )


def domains_path_for(mapping_file_path: Union[str, Path]) -> Path:
    """
    Return the path of the GO domains file that belongs to a mapping file.

    The domains file is named after the part of the mapping file name before
    the first dot, e.g. "homo_sapiens.go_mappings" -> "homo_sapiens.go_domains".
    """
    mapping_path = Path(mapping_file_path)
    species = mapping_path.name.split(".")[0]
    return mapping_path.with_name(species + DOMAINS_SUFFIX)
