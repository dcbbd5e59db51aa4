"""
Statement format discovery.

Every public module of this package is imported in file name order, and
each format registers itself through ``@ParserRegistry.register``. Since
registration order breaks priority ties, the sort keeps detection stable.
A module failing to import only costs its own formats.
"""

import importlib
import warnings
from pathlib import Path

_parsers_dir = Path(__file__).parent

_parser_modules = []

for file_path in sorted(_parsers_dir.glob("*.py")):
    if file_path.stem == "__init__" or file_path.stem.startswith("_"):
        continue

    module_name = f"batimport.ingestion.parsers.{file_path.stem}"

    try:
        module = importlib.import_module(module_name)
        _parser_modules.append(module)
    except Exception as e:  # noqa: BLE001
        warnings.warn(f"Failed to import parser module {module_name}: {e}")

from .bank_csv import BankCsvParser
from .bourso_pdf import BoursoPdfParser
from .bourso_txt import BoursoExcel2002Parser, BoursoExcel95Parser
from .lcl_pdf import LclPdfParser
from .lcl_txt import LclTxtParser

__all__ = [
    "BankCsvParser",
    "BoursoPdfParser",
    "BoursoExcel2002Parser",
    "BoursoExcel95Parser",
    "LclPdfParser",
    "LclTxtParser",
]
