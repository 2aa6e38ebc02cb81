"""Re-run failed CI for a commit until it passes or the budget runs out."""

from __future__ import annotations

import time
import zipfile
from pathlib import Path

from prlander.core.config import RemediationConfig
from prlander.core.errors import ProviderError, TransientProviderError
from prlander.core.log import logger
from prlander.core.logdir import RunLogDir
from prlander.core.result import RemediationAttempt, RemediationReport
from prlander.github.models import CheckRunRecord, RecordKind


def partition(records: list[CheckRunRecord]):
    """Split records into (failed, pending, passing)."""
    failed, pending, passing = [], [], []
    for record in records:
        if record.failed:
            failed.append(record)
        elif record.pending:
            pending.append(record)
        else:
            passing.append(record)
    return failed, pending, passing


class CIRemediationEngine:
    """Inspects a commit's workflow and check runs and re-runs failures.

    Attempt n (1-based) fetches every record for the commit. All green
    returns success at once. Failures get their logs collected and a
    re-run requested, pending records are just waited on; either way
    the engine sleeps the backoff and tries again. After
    ``max_retries + 1`` inspected attempts it gives up.
    """

    def __init__(
        self,
        client,
        settings: RemediationConfig | None = None,
        sleep=time.sleep,
        log=logger,
    ):
        self.client = client
        self.settings = settings or RemediationConfig()
        self.sleep = sleep
        self.log = log

    def remediate(self, commit_sha: str, max_retries: int | None = None) -> bool:
        """Return True once the commit's CI is green within the budget."""
        return self.run(commit_sha, max_retries).success

    def run(
        self, commit_sha: str, max_retries: int | None = None,
    ) -> RemediationReport:
        """Remediate and report every attempt made."""
        if max_retries is None:
            max_retries = self.settings.max_retries
        report = RemediationReport(commit_sha=commit_sha)

        for number in range(1, max_retries + 2):
            with self.log.span(
                "remediation attempt", attempt=number, commit=commit_sha,
            ):
                attempt = self._attempt(number, commit_sha)
            report.attempts.append(attempt)

            if not (
                attempt.inconclusive
                or attempt.failed_records
                or attempt.pending_records
            ):
                report.success = True
                self.log.info(f"All checks passed for {commit_sha}")
                return report

            if number <= max_retries:
                self.sleep(self.settings.backoff)

        self.log.error(
            f"Checks for {commit_sha} not green after "
            f"{len(report.attempts)} attempt(s)",
            logs=sorted(str(p) for p in report.log_paths),
        )
        return report

    def _attempt(self, number: int, commit_sha: str) -> RemediationAttempt:
        attempt = RemediationAttempt(attempt_number=number)
        try:
            records = self.fetch_records(commit_sha)
        except TransientProviderError as e:
            self.log.warn(
                "Could not fetch CI status, treating attempt as "
                "inconclusive",
                error=str(e),
            )
            attempt.inconclusive = True
            return attempt

        failed, pending, _passing = partition(records)
        attempt.failed_records = failed
        attempt.pending_records = pending

        if failed:
            self.log.warn(
                f"Attempt {number}: {len(failed)} failed check(s)",
                failed=[r.label for r in failed],
            )
            self._rerun_failed(failed, attempt)
        elif pending:
            self.log.info(
                f"Attempt {number}: waiting on {len(pending)} pending check(s)",
                pending=[r.label for r in pending],
            )
        return attempt

    def fetch_records(self, commit_sha: str) -> list[CheckRunRecord]:
        return (
            self.client.list_workflow_runs(commit_sha)
            + self.client.list_check_runs(commit_sha)
        )

    def _rerun_failed(
        self, failed: list[CheckRunRecord], attempt: RemediationAttempt,
    ) -> None:
        for record in failed:
            if record.kind is not RecordKind.WORKFLOW:
                continue
            log_dir = self.collect_logs(record.id)
            if log_dir is not None:
                attempt.logs_collected.add(log_dir)
            self._request(
                f"workflow:{record.id}",
                lambda run_id=record.id: self.client.rerun_workflow(run_id),
                attempt,
            )

        # One re-run per suite, however many of its checks failed
        suites = sorted({
            record.suite_id for record in failed
            if record.kind is RecordKind.CHECK and record.suite_id is not None
        })
        for suite_id in suites:
            self._request(
                f"suite:{suite_id}",
                lambda s=suite_id: self.client.rerun_check_suite(s),
                attempt,
            )

    def _request(self, key: str, call, attempt: RemediationAttempt) -> None:
        try:
            call()
        except ProviderError as e:
            self.log.error(f"Re-run request for {key} failed", error=str(e))
            return
        attempt.rerun_requests.add(key)
        self.log.info(f"Requested re-run of {key}")

    def collect_logs(self, run_id: int) -> Path | None:
        """Download and extract a run's logs under logs_dir/<run_id>.

        Best-effort: failures are logged and None is returned.
        """
        log_dir = RunLogDir(self.settings.logs_dir, run_id)
        try:
            content = self.client.download_run_logs(run_id)
            path = log_dir.save(content)
        except (ProviderError, OSError, zipfile.BadZipFile) as e:
            self.log.error(
                f"Could not collect logs for run {run_id}", error=str(e),
            )
            return log_dir.run_dir if log_dir.archive.exists() else None
        self.log.info(
            f"Saved logs for run {run_id}",
            path=str(path),
            files=[str(p.relative_to(path)) for p in log_dir.files()],
        )
        return path
