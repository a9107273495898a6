import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

from goea.association_parser import split_fields
from goea.errors import DomainFileMissing

logger = logging.getLogger(__name__)

MISSING_DOMAIN = "-"


class DomainIndex:
    """
    GO accession to GO domain (e.g. "biological_process") lookup.
    """

    def __init__(self, domains: Optional[Dict[str, str]] = None, available: bool = True) -> None:
        """
        Args:
            domains: GO accession to domain label
            available: False when the domains file could not be found
        """
        self._domains = MappingProxyType(dict(domains or {}))
        self.available = available

    @property
    def domains(self) -> Mapping[str, str]:
        return self._domains

    def get(self, go_accession: Optional[str]) -> str:
        """Return the domain of a GO accession, "-" if unknown."""
        if go_accession is None:
            return MISSING_DOMAIN
        return self._domains.get(go_accession, MISSING_DOMAIN)

    def __len__(self) -> int:
        return len(self._domains)


def load(raw_lines: Iterable[str]) -> DomainIndex:
    """
    Build a domain index from "accession,domain" lines. There is no header.
    """
    domains: Dict[str, str] = {}
    for line in raw_lines:
        fields = split_fields(line.rstrip("\r\n"))
        if len(fields) < 2:
            logger.debug(f"Skipping GO domain line: {line!r}")
            continue
        domains[fields[0]] = fields[1]
    return DomainIndex(domains)


def load_domain_file(domain_file_path: Union[str, Path], strict: bool = False) -> DomainIndex:
    """
    Load a GO domains file from disk.

    A missing file is not fatal: an empty index is returned, flagged as not
    available, so that every domain shows as "-".

    Args:
        domain_file_path: Path to the .go_domains file
        strict: Raise instead of continuing without domains

    Returns:
        The domain index

    Raises:
        DomainFileMissing: If the file does not exist and strict is set
    """
    domain_path = Path(domain_file_path)
    if not domain_path.is_file():
        if strict:
            raise DomainFileMissing(f'GO domains file "{domain_path.name}" not found!')
        logger.warning(f'GO domains file "{domain_path.name}" not found! Continuing without GO domains.')
        return DomainIndex(available=False)

    logger.info(f"Loading GO domains from {domain_path}")
    with open(domain_path, "r", encoding="utf-8") as f:
        domain_index = load(f)
    logger.info(f"Loaded {len(domain_index)} GO domains")
    return domain_index
