"""Source declaration provider: scopes, tree-sitter parsing and symbol resolution."""

from .inference import ScopeTypes
from .normalizer import TreeSitterNormalizer
from .provider import SourceProvider, SourceSet
from .scope import AnalysisScope
from .symbols import Reference, SymbolIndex
from .syntax import FieldDecl, FunctionDecl, ModuleDecl, ParameterDecl, TypeDecl
from .treesitter_parser import TreeSitterParser

__all__ = [
    "AnalysisScope",
    "FieldDecl",
    "FunctionDecl",
    "ModuleDecl",
    "ParameterDecl",
    "Reference",
    "ScopeTypes",
    "SourceProvider",
    "SourceSet",
    "SymbolIndex",
    "TreeSitterNormalizer",
    "TreeSitterParser",
    "TypeDecl",
]
