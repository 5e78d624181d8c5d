from typing import Optional


class XmlFormError(Exception):
    """Base for every recoverable transcoding failure."""


class ParseFailure(XmlFormError):
    def __init__(self, message: str, source: str = "xml",
                 line: Optional[int] = None, column: Optional[int] = None):
        self.source = source
        self.line = line
        self.column = column
        where = f" (line {line}, column {column})" if line else ""
        super().__init__(f"{source.upper()} parsing error: {message}{where}")


class StructureLost(XmlFormError):
    """Edited document no longer carries enough back-references to rebuild XML."""


class EditRejected(XmlFormError):
    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"{target}: {reason}")
