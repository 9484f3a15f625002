"""
Domain models — pydantic types for the generator.

    from kubegen.core.models import GenerationTarget, ConfigRecord, GlobalFlags
"""

from kubegen.core.models.action import Action, Receipt
from kubegen.core.models.config import ConfigRecord, check_primitive
from kubegen.core.models.context import (
    GenerationContext,
    GlobalFlags,
    PlatformType,
    ScriptSelection,
)
from kubegen.core.models.target import GenerationTarget
from kubegen.core.models.template import GeneratedFile

__all__ = [
    "Action",
    "ConfigRecord",
    "GeneratedFile",
    "GenerationContext",
    "GenerationTarget",
    "GlobalFlags",
    "PlatformType",
    "Receipt",
    "ScriptSelection",
    "check_primitive",
]
