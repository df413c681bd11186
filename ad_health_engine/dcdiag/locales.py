"""
Localized dcdiag phrases.

dcdiag prints its progress in the display language of the machine running it.
Each locale supplies three regular expressions: the "test started" line (with
a `name` group), and the "passed" and "failed" verdict lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class DcdiagLocale:
    name: str
    started: re.Pattern
    passed: re.Pattern
    failed: re.Pattern

    @classmethod
    def from_dict(cls, data: dict) -> "DcdiagLocale":
        """Build a locale from config entries (plain regex strings)."""
        try:
            return cls(
                name=data["name"],
                started=re.compile(data["started"]),
                passed=re.compile(data["passed"]),
                failed=re.compile(data["failed"]),
            )
        except KeyError as e:
            raise ValueError(f"dcdiag locale is missing {e}") from e
        except re.error as e:
            raise ValueError(f"dcdiag locale {data.get('name')!r} has an invalid pattern: {e}") from e


ENGLISH = DcdiagLocale(
    name="en",
    started=re.compile(r"Starting test:\s*(?P<name>.+)$"),
    passed=re.compile(r"\bpassed test\b"),
    failed=re.compile(r"\bfailed test\b"),
)

# "Test wird gestartet: Connectivity"
# "......................... DC01 hat den Test Connectivity bestanden."
# "......................... DC01 hat den Test Replications nicht bestanden."
GERMAN = DcdiagLocale(
    name="de",
    started=re.compile(r"Test wird gestartet:\s*(?P<name>.+)$"),
    passed=re.compile(r"\bhat den Test\b.*\bbestanden\b"),
    failed=re.compile(r"\bhat den Test\b.*\bnicht bestanden\b"),
)

BUILTIN_LOCALES = (ENGLISH, GERMAN)


def load_locales(extra: Optional[Iterable[dict]] = None) -> tuple[DcdiagLocale, ...]:
    """Built-in locales followed by any configured in the config file."""
    locales = list(BUILTIN_LOCALES)
    for entry in extra or ():
        locales.append(DcdiagLocale.from_dict(entry))
    return tuple(locales)
