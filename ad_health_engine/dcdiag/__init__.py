"""dcdiag package — invocation, localized output parsing, test catalog."""

from .catalog import GENERIC_EXPLANATION, TEST_EXPLANATIONS, explain
from .locales import BUILTIN_LOCALES, DcdiagLocale, load_locales
from .parser import parse_dcdiag_output, resolve_sub_tests
from .runner import DcdiagRunner

__all__ = [
    "GENERIC_EXPLANATION",
    "TEST_EXPLANATIONS",
    "explain",
    "BUILTIN_LOCALES",
    "DcdiagLocale",
    "load_locales",
    "parse_dcdiag_output",
    "resolve_sub_tests",
    "DcdiagRunner",
]
