import json
from typing import Callable

from fieldguard.common import bus
from fieldguard.analysis.schema import AnalysisResult, ViolationLevel

from .protocols import CheckReporterProtocol


class CheckReporter(CheckReporterProtocol):
    """
    Renders violations through the message bus, one line per violation,
    followed by a summary.
    """

    def report(self, result: AnalysisResult) -> bool:
        for error in result.parse_errors:
            bus.error(
                "check.file.parse_error",
                path=error.path,
                line=error.lineno,
                reason=error.reason,
            )

        for violation in result.violations:
            span = violation.span
            params = dict(
                path=span.path,
                line=span.lineno,
                col=span.col_offset + 1,
                rule_id=violation.rule_id,
                message=violation.message,
            )
            if violation.level == ViolationLevel.ERROR:
                bus.error("check.issue.error", **params)
            else:
                bus.warning("check.issue.warning", **params)

        bus.debug(
            "check.summary.stats",
            fields=result.whitelisted_field_count,
            sites=result.site_count,
        )
        if result.skipped_site_count:
            bus.debug("check.summary.skipped", count=result.skipped_site_count)

        if result.error_count or result.parse_errors:
            bus.error(
                "check.summary.errors",
                errors=result.error_count + len(result.parse_errors),
                warnings=result.warning_count,
                files=result.file_count,
            )
        elif result.warning_count:
            bus.warning(
                "check.summary.warnings",
                warnings=result.warning_count,
                files=result.file_count,
            )
        else:
            bus.success("check.summary.clean", files=result.file_count)

        return result.is_success


class JsonCheckReporter(CheckReporterProtocol):
    """
    Writes one JSON object per violation (and per unreadable file), for
    consumption by other tools.
    """

    def __init__(self, write: Callable[[str], None] = print):
        self._write = write

    def report(self, result: AnalysisResult) -> bool:
        for error in result.parse_errors:
            self._write(
                json.dumps(
                    {
                        "level": ViolationLevel.ERROR.value,
                        "path": error.path,
                        "line": error.lineno,
                        "message": error.reason,
                    }
                )
            )
        for violation in result.violations:
            self._write(json.dumps(violation.to_dict()))
        return result.is_success
