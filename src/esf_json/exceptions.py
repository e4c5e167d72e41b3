"""
Exceptions raised by esf-json.

Only input that is not well-formed XML is fatal. Missing positional fields
and unrecognized subtree shapes are resolved inside the parsers and never
surface as exceptions.
"""

from pathlib import Path
from typing import Optional, Union


class MalformedInputError(ValueError):
    """
    Raised when the source bytes cannot be parsed as XML.

    Attributes:
        source: Path of the offending file, when known
    """

    def __init__(self, message: str, source: Optional[Union[str, Path]] = None):
        self.source = Path(source) if source is not None else None
        if self.source is not None:
            message = f"{message} (file: {self.source})"
        super().__init__(message)
