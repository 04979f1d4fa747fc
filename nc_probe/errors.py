"""
Error taxonomy of nc_probe.

Every error is terminal for the request that raised it. At the boundary the
errors are rendered as plain message strings; `to_dict` adds the kind for
consumers that need to tell them apart.
"""

from typing import *


class NetCDFError(Exception):
    """Base class, holds the detail message and renders it with a kind prefix."""
    prefix: str = "NetCDF error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.__class__.__name__, "message": str(self)}


class FileOpenError(NetCDFError):
    prefix = "Failed to open NetCDF file"


class VariableReadError(NetCDFError):
    def __init__(self, variable: str, detail: str):
        super().__init__(detail)
        self.variable = variable

    def __str__(self) -> str:
        return f"Failed to read variable '{self.variable}': {self.message}"


class VariableNotFound(NetCDFError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Variable '{self.name}' not found in file"


class DimensionNotFound(NetCDFError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Dimension '{self.name}' not found in file"


class InvalidFormat(NetCDFError):
    prefix = "Invalid file format"


class IoError(NetCDFError):
    prefix = "IO error"

    @classmethod
    def from_os_error(cls, exc: OSError) -> "IoError":
        return cls(str(exc))


class NetCDFLibError(NetCDFError):
    prefix = "NetCDF library error"


class ConversionError(NetCDFError):
    prefix = "Data conversion error"


class InvalidSubsetRequest(NetCDFError):
    prefix = "Invalid subset request"


def render_error(err: NetCDFError) -> str:
    """Wire form of an error: just its message."""
    return str(err)
