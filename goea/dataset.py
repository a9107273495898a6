import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

import pandas as pd

logger = logging.getLogger(__name__)

PROTEIN_KEY_SEPARATOR = " "
DECOY_SUFFIX = "_REVERSED"
DECOY_PREFIXES = ("REV_", "rev_")

_TRUE_VALUES = {"true", "1", "yes", "y", "t"}


def is_decoy_accession(accession: str) -> bool:
    """Check if a protein accession names a decoy (reversed) sequence."""
    return accession.endswith(DECOY_SUFFIX) or accession.startswith(DECOY_PREFIXES)


@dataclass
class ProteinMatch:
    """
    A protein identification: a single protein or a protein group.

    The key lists the member accessions separated by a space. For groups,
    main_accession designates the representative protein.
    """

    key: str
    validated: bool = True
    decoy: Optional[bool] = None
    main_accession: Optional[str] = None

    @property
    def accessions(self) -> List[str]:
        return [accession for accession in self.key.split(PROTEIN_KEY_SEPARATOR) if accession]

    @property
    def is_group(self) -> bool:
        return len(self.accessions) > 1

    @property
    def is_decoy(self) -> bool:
        if self.decoy is not None:
            return self.decoy
        return any(is_decoy_accession(accession) for accession in self.accessions)

    def resolve_accession(self) -> str:
        """
        Return the accession used to look up GO terms for this match.

        Groups resolve to their main accession, or to their first member if no
        main accession was given.
        """
        if self.is_group:
            return self.main_accession or self.accessions[0]
        return self.key.strip()


class DatasetProteinSet:
    """
    The validated, non-decoy proteins of an experiment, as resolved accessions.
    """

    def __init__(self, matches: Iterable[Union[ProteinMatch, str]], name: str = "dataset") -> None:
        """
        Args:
            matches: Protein matches, or plain accessions taken as validated targets
            name: Name of the dataset
        """
        self.name = name
        self.proteins: Set[str] = set()
        self.excluded: int = 0

        for match in matches:
            if isinstance(match, str):
                match = ProteinMatch(match)
            if not match.validated or match.is_decoy:
                self.excluded += 1
                continue
            self.proteins.add(match.resolve_accession())

        self.size: int = len(self.proteins)
        logger.info(
            f"Dataset {self.name}: {self.size} validated target proteins "
            f"({self.excluded} matches excluded)"
        )

    def has_protein(self, accession: str) -> bool:
        return accession in self.proteins

    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self.proteins)

    @classmethod
    def from_file(cls, dataset_file_path: Union[str, Path], name: str = "") -> "DatasetProteinSet":
        """
        Load a dataset from a file.

        Two layouts are accepted: one protein accession per line, or a tab
        separated table with an "accession" column and the optional columns
        "validated", "decoy" and "main_accession".

        Args:
            dataset_file_path: Path to the dataset file
            name: Name for the dataset, defaults to the file stem

        Returns:
            The dataset protein set
        """
        dataset_path = Path(dataset_file_path)
        name = name if name else dataset_path.stem

        with open(dataset_path, "r", encoding="utf-8") as f:
            first_line = f.readline()

        header = [column.strip().lower() for column in first_line.rstrip("\r\n").split("\t")]
        if "accession" in header:
            return cls(_read_match_table(dataset_path), name=name)

        with open(dataset_path, "r", encoding="utf-8") as f:
            accessions = [line.strip() for line in f if line.strip()]
        return cls(accessions, name=name)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


def _read_match_table(dataset_path: Path) -> List[ProteinMatch]:
    df = pd.read_csv(dataset_path, sep="\t", dtype=str, keep_default_na=False)
    df.columns = [column.strip().lower() for column in df.columns]

    matches = []
    for row in df.to_dict(orient="records"):
        key = row["accession"].strip()
        if not key:
            continue
        decoy = row.get("decoy", "")
        matches.append(
            ProteinMatch(
                key=key,
                validated=_as_bool(row["validated"]) if "validated" in row else True,
                decoy=_as_bool(decoy) if decoy != "" else None,
                main_accession=row.get("main_accession") or None,
            )
        )
    logger.info(f"Read {len(matches)} protein matches from {dataset_path}")
    return matches
