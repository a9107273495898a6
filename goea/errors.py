class GOEAError(Exception):
    """Base class for errors raised by the GO enrichment engine."""


class MappingFileError(GOEAError, FileNotFoundError):
    """
    The background GO mapping file could not be found.

    This is fatal for the current computation: the caller has to report it and
    let the user choose another mapping set.
    """


class DomainFileMissing(GOEAError, FileNotFoundError):
    """
    The GO domains file could not be found.

    Only raised when domains are loaded in strict mode; by default the lookup
    continues with every domain shown as "-".
    """
