"""
Console test runner.

Runs named checks one after another, prints a line per check and a summary
at the end. A failing check never stops the run; the summary decides the
process exit code.
"""
import logging
import time
import traceback
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TestResult:
    """Outcome of a single check"""
    __test__ = False

    name: str
    passed: bool
    duration: float
    error: Optional[str] = None


class TestRunner:
    """Collects results of sequential checks"""
    __test__ = False

    def __init__(self, out: Callable[[str], None] = print):
        self.results: List[TestResult] = []
        self._out = out

    def section(self, title: str) -> None:
        """Print a section header"""
        self._out(f"\n{'=' * 60}\n{title}\n{'=' * 60}")

    def run_test(self, name: str, fn: Callable[[], Any]) -> bool:
        """
        Run one check and record its result.

        A check fails when it raises or returns False. Any other return
        value counts as a pass.

        Returns:
            True if the check passed
        """
        started = time.perf_counter()
        error: Optional[str] = None
        try:
            outcome = fn()
            passed = outcome is not False
            if not passed:
                error = "check returned False"
        except Exception as e:
            passed = False
            error = f"{type(e).__name__}: {e}"
            logger.debug(f"{name} failed:\n{traceback.format_exc()}")

        duration = time.perf_counter() - started
        self.results.append(TestResult(name=name, passed=passed, duration=duration, error=error))

        if passed:
            self._out(f"✅ {name} ({duration:.2f}s)")
        else:
            self._out(f"❌ {name}: {error}")
        return passed

    def record_failure(self, name: str, error: str) -> None:
        """Record a failure that happened outside ``run_test``"""
        self.results.append(TestResult(name=name, passed=False, duration=0.0, error=error))
        self._out(f"❌ {name}: {error}")

    @property
    def passed(self) -> List[TestResult]:
        return [r for r in self.results if r.passed]

    @property
    def failed(self) -> List[TestResult]:
        return [r for r in self.results if not r.passed]

    def print_summary(self) -> int:
        """
        Print totals and failed check names.

        Returns:
            Process exit code: 0 if every check passed, 1 otherwise
        """
        total = len(self.results)
        self.section("📊 TEST SUMMARY")
        self._out(f"Total:  {total}")
        self._out(f"Passed: {len(self.passed)}")
        self._out(f"Failed: {len(self.failed)}")

        if self.failed:
            self._out("\nFailed tests:")
            for result in self.failed:
                self._out(f"  - {result.name}: {result.error}")
            return 1

        if total == 0:
            self._out("\n⚠️  No tests were run")
            return 1

        self._out("\n🎉 All tests passed!")
        return 0
