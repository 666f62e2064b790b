from .parser_factory import create_parser_for_language
from .symbol_extractor import SymbolExtractor

__all__ = ["SymbolExtractor", "create_parser_for_language"]
