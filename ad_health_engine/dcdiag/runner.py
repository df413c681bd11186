"""
dcdiag invocation — one run per host for the requested sub-tests.
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from ..probes.base import Outcome
from ..safety.guardian import SafetyViolation
from ..shell.runner import CommandError, CommandRunner
from .locales import BUILTIN_LOCALES, DcdiagLocale
from .parser import parse_dcdiag_output, resolve_sub_tests

logger = logging.getLogger("ad_health_engine.dcdiag")

_TEST_NAME = re.compile(r"^[A-Za-z]+$")


class DcdiagRunner:
    """
    Runs `dcdiag /s:<host> /test:<name> ...` and parses the verdicts.

    No retries. If the invocation fails entirely every requested test is
    reported Inaccessible.
    """

    def __init__(
        self,
        runner: CommandRunner,
        locales: Sequence[DcdiagLocale] = BUILTIN_LOCALES,
        executable: str = "dcdiag",
    ):
        self.runner = runner
        self.locales = tuple(locales)
        self.executable = executable

    def build_args(self, host: str, tests: Sequence[str]) -> list[str]:
        host = self.runner.guardian.validate_host(host)
        args = [self.executable, f"/s:{host}"]
        for test in tests:
            if not _TEST_NAME.match(test):
                raise ValueError(f"Invalid dcdiag test name: {test!r}")
            args.append(f"/test:{test}")
        return args

    async def run(self, host: str, tests: Sequence[str]) -> dict[str, Outcome]:
        if not tests:
            return {}
        try:
            output = await self.runner.run(self.build_args(host, tests))
        except (CommandError, SafetyViolation, ValueError) as e:
            logger.warning(f"[dcdiag] {host}: invocation failed — {e}")
            return self.inaccessible(tests)

        if output.returncode != 0 and not output.stdout.strip():
            logger.warning(
                f"[dcdiag] {host}: exited with {output.returncode} and no output — "
                f"{output.stderr.strip()[:200]}"
            )
            return self.inaccessible(tests)

        parsed = parse_dcdiag_output(output.lines, self.locales)
        logger.info(f"[dcdiag] {host}: {len(parsed)} verdicts parsed")
        return resolve_sub_tests(parsed, tests)

    @staticmethod
    def inaccessible(tests: Sequence[str]) -> dict[str, Outcome]:
        return {name: Outcome.INACCESSIBLE for name in tests}
