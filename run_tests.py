#!/usr/bin/env python3
# ================================================================================
# Test Runner Script
# ================================================================================
#
# Entry point for running the autotest_essentials test suite with a
# consistent set of options locally and in CI.
#
# Features:
#   - Select a suite (unit, isolation, plugin, all)
#   - Filter by additional pytest markers
#   - Collect Allure results and generate the HTML report
#
# Usage:
#   python run_tests.py --suite isolation
#   python run_tests.py --suite all --verbose --allure
#
# ================================================================================

import argparse
import shutil
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from loguru import logger


# Configure logging
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    level="INFO"
)


SUITE_MARKERS = {
    "unit": "unit",
    "isolation": "isolation",
    "plugin": "plugin",
    "all": None,
}


class TestRunner:
    """
    Orchestrates a pytest run and the optional Allure report.
    """

    def __init__(
        self,
        suite: str = "all",
        tags: Optional[List[str]] = None,
        allure_report: bool = False,
        verbose: bool = False
    ):
        """
        Initialize test runner.

        Args:
            suite: Test suite to run - "unit", "isolation", "plugin", "all"
            tags: Additional pytest markers to filter tests
            allure_report: Collect Allure results and generate a report
            verbose: Enable verbose output
        """
        self.suite = suite
        self.tags = tags or []
        self.allure_report = allure_report
        self.verbose = verbose

        # Paths
        self.root_dir = Path(__file__).parent
        self.reports_dir = self.root_dir / "reports"
        self.allure_results = self.reports_dir / "allure-results"
        self.allure_report_dir = self.reports_dir / "allure-report"

    def run(self) -> int:
        """
        Execute the test run.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        logger.info("=" * 60)
        logger.info("Starting Test Execution")
        logger.info("=" * 60)
        logger.info(f"Suite: {self.suite}")
        logger.info(f"Tags: {self.tags or 'All'}")
        logger.info("=" * 60)

        if self.allure_report:
            self.allure_results.mkdir(parents=True, exist_ok=True)

        cmd = self.build_pytest_command()
        logger.info(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, cwd=str(self.root_dir))
            exit_code = result.returncode
        except OSError as e:
            logger.error(f"Test execution failed: {e}")
            exit_code = 1

        if self.allure_report:
            self._generate_allure_report()

        self._print_summary(exit_code)
        return exit_code

    def build_pytest_command(self) -> List[str]:
        """Build the pytest command with all options."""
        cmd = [sys.executable, "-m", "pytest", "testsuites/"]

        markers = list(self.tags)
        suite_marker = SUITE_MARKERS.get(self.suite)
        if suite_marker:
            markers.insert(0, suite_marker)

        if markers:
            cmd.extend(["-m", " and ".join(f"({m})" for m in markers)])

        if self.allure_report:
            cmd.extend(["--alluredir", str(self.allure_results)])

        cmd.append("-v" if self.verbose else "-q")
        return cmd

    def _generate_allure_report(self) -> None:
        """Generate Allure HTML report."""
        logger.info("Generating Allure report...")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        report_path = self.reports_dir / f"allure-report-{timestamp}"

        try:
            subprocess.run([
                "allure", "generate",
                str(self.allure_results),
                "-o", str(report_path),
                "--clean"
            ], check=True)
        except FileNotFoundError:
            logger.warning("Allure CLI not found. Please install Allure to generate reports.")
            return
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to generate Allure report: {e}")
            return

        latest_link = self.allure_report_dir
        if latest_link.is_symlink():
            latest_link.unlink()
        elif latest_link.exists():
            shutil.rmtree(latest_link)
        latest_link.symlink_to(report_path.name)

        logger.info(f"Report generated: {report_path}")

    def _print_summary(self, exit_code: int) -> None:
        """Print test execution summary."""
        logger.info("=" * 60)
        if exit_code == 0:
            logger.info("TEST EXECUTION COMPLETED SUCCESSFULLY")
        else:
            logger.error(f"TEST EXECUTION FAILED (exit code: {exit_code})")

        if self.allure_report:
            logger.info(f"Report available at: {self.allure_report_dir}")

        logger.info("=" * 60)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Autotest Essentials Test Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the isolation scope tests
  python run_tests.py --suite isolation

  # Run everything with verbose output and an Allure report
  python run_tests.py --suite all --verbose --allure
        """
    )

    parser.add_argument(
        "--suite",
        choices=sorted(SUITE_MARKERS),
        default="all",
        help="Test suite to run (default: all)"
    )

    parser.add_argument(
        "--tags",
        nargs="+",
        default=[],
        help="Additional pytest markers to filter tests"
    )

    parser.add_argument(
        "--allure",
        action="store_true",
        help="Collect Allure results and generate the report"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    runner = TestRunner(
        suite=args.suite,
        tags=args.tags,
        allure_report=args.allure,
        verbose=args.verbose
    )

    sys.exit(runner.run())


if __name__ == "__main__":
    main()
