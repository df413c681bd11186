"""
dcdiag output parser — turns the tool's free-text progress output into one
Outcome per sub-test.

A verdict line is attributed to the most recently started test only, and a
result is committed the moment both a test name and a verdict are pending.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from ..probes.base import Outcome
from .locales import BUILTIN_LOCALES, DcdiagLocale

logger = logging.getLogger("ad_health_engine.dcdiag.parser")

_TRAILING_PUNCTUATION = " \t.:;,!"


def _match_start(line: str, locales: Sequence[DcdiagLocale]) -> Optional[str]:
    for locale in locales:
        match = locale.started.search(line)
        if match:
            name = match.group("name").strip().rstrip(_TRAILING_PUNCTUATION)
            return name or None
    return None


def _match_verdict(line: str, locales: Sequence[DcdiagLocale]) -> Optional[Outcome]:
    # Failed first: "nicht bestanden" also contains "bestanden"
    for locale in locales:
        if locale.failed.search(line):
            return Outcome.FAILED
    for locale in locales:
        if locale.passed.search(line):
            return Outcome.PASSED
    return None


def parse_dcdiag_output(
    lines: Iterable[str],
    locales: Sequence[DcdiagLocale] = BUILTIN_LOCALES,
) -> Mapping[str, Outcome]:
    """
    Parse dcdiag output into {test name: Passed|Failed}.

    Returns a read-only mapping in the order tests completed. A later
    start/verdict pair for the same name overwrites the earlier one.
    """
    results: dict[str, Outcome] = {}
    pending_name: Optional[str] = None
    pending_status: Optional[Outcome] = None

    for raw in lines:
        line = raw.rstrip("\r\n")

        name = _match_start(line, locales)
        if name is not None:
            pending_name = name
            pending_status = None  # a verdict must follow its own start line
        else:
            status = _match_verdict(line, locales)
            if status is not None:
                if pending_name is None:
                    logger.debug(f"Verdict without a started test ignored: {line.strip()}")
                    continue
                pending_status = status

        if pending_name is not None and pending_status is not None:
            results[pending_name] = pending_status
            pending_name = None
            pending_status = None

    return MappingProxyType(results)


def resolve_sub_tests(
    parsed: Mapping[str, Outcome],
    requested: Iterable[str],
) -> dict[str, Outcome]:
    """
    Exactly one outcome per requested test name, in request order.

    Names are matched case-insensitively; requested tests the output never
    mentions become NoData and unrequested tests are dropped.
    """
    by_key = {name.casefold(): outcome for name, outcome in parsed.items()}
    resolved: dict[str, Outcome] = {}
    for name in requested:
        resolved[name] = by_key.get(name.casefold(), Outcome.NO_DATA)

    missing = [n for n, o in resolved.items() if o is Outcome.NO_DATA]
    if missing:
        logger.debug(f"No dcdiag verdict for: {', '.join(missing)}")
    return resolved
