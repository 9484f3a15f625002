"""
Generated file model — produced by the Writing phase.
"""

from __future__ import annotations

from pydantic import BaseModel


class GeneratedFile(BaseModel):
    """A file to be emitted by the file-write collaborator.

    Attributes:
        path:       Relative path from the destination directory.
        content:    Full file content.
        overwrite:  Whether to replace an existing file.
        executable: Script that the End phase may mark executable.
        reason:     Why this file was generated.
    """

    path: str
    content: str
    overwrite: bool = True
    executable: bool = False
    reason: str = ""
