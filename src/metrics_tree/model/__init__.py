"""Code model: element tree and its assembly from declarations."""

from .assembler import ModelAssembler
from .elements import (
    DEFAULT_PACKAGE_DISPLAY,
    ClassElement,
    CodeElement,
    FileElement,
    MethodElement,
    PackageElement,
    ProjectElement,
)
from .maintainability import maintainability_index

__all__ = [
    "DEFAULT_PACKAGE_DISPLAY",
    "ClassElement",
    "CodeElement",
    "FileElement",
    "MethodElement",
    "ModelAssembler",
    "PackageElement",
    "ProjectElement",
    "maintainability_index",
]
