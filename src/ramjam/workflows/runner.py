"""Concurrent execution of workflow documents.

Every document runs in its own thread with its own variables; the steps of a
document run sequentially. Results are passed back through a queue and
aggregated once all threads have finished.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from pathlib import Path
from queue import Queue
from types import TracebackType

import httpx

from ramjam.workflows.collector import DEFAULT_EXTENSIONS, collect_paths
from ramjam.workflows.errors import StepError, WorkflowError
from ramjam.workflows.executor import DEFAULT_USER_AGENT, StepExecutor
from ramjam.workflows.expressions import VariableStore
from ramjam.workflows.models import DocumentResult, RunResult
from ramjam.workflows.parser import WorkflowParser

logger = logging.getLogger(__name__)


class DocumentLog:
    """Buffered progress lines of one document, prefixed with its name."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.lines: list[str] = []

    def __call__(self, message: str) -> None:
        self.lines.append(f"[{self.prefix}] {message}")


class WorkflowRunner:
    """Runs workflow documents concurrently and aggregates their failures."""

    def __init__(
        self,
        timeout: float = 30.0,
        verbose: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            timeout: Limit in seconds for each request, covering the whole
                exchange up to the last byte of the response body.
            verbose: Whether to emit detailed progress lines.
            user_agent: Default `User-Agent` header.
            extensions: File name suffixes recognized as workflow documents.
            transport: Optional transport for the HTTP client.
        """
        self.timeout = timeout
        self.verbose = verbose
        self.user_agent = user_agent
        self.extensions = tuple(extensions)
        self.parser = WorkflowParser()
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._executor = StepExecutor(self._client, verbose=verbose, user_agent=user_agent, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> WorkflowRunner:
        return self

    def __exit__(self, ty: type[BaseException] | None, value: BaseException | None, tb: TracebackType | None) -> None:
        self.close()

    def run_paths(self, paths: Iterable[str | Path]) -> RunResult:
        """Run every workflow document found under `paths`.

        Args:
            paths: Files or directories.

        Returns:
            RunResult with the progress lines and failures of every document.

        Raises:
            NoPathsProvidedError: If `paths` is empty.
            PathAccessError: If a path cannot be resolved.
            NoFilesFoundError: If no documents were found.
        """
        files = collect_paths(paths, self.extensions)
        results: Queue[DocumentResult] = Queue(maxsize=len(files))

        workers = [
            threading.Thread(
                target=self._run_worker,
                args=(path, index, results),
                name=f"ramjam_document_{index}",
                daemon=True,
            )
            for index, path in enumerate(files)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        run = RunResult()
        while not results.empty():
            run.documents.append(results.get_nowait())
        return run

    def _run_worker(self, path: Path, index: int, results: Queue[DocumentResult]) -> None:
        try:
            result = self.run_file(path, index)
        except Exception as e:
            # Every worker puts exactly one result
            logger.exception("Unexpected error while running %s", path)
            result = DocumentResult(path=str(path), index=index, errors=[e])
        results.put(result)

    def run_file(self, path: str | Path, index: int = 0) -> DocumentResult:
        """Run the steps of one document sequentially.

        Step failures are recorded and the next step still runs. A document
        that cannot be read or parsed yields a single failure.
        """
        path = Path(path)
        result = DocumentResult(path=str(path), index=index)
        log = DocumentLog(path.name)
        result.lines = log.lines

        log(f"Running workflow file: {path}")

        try:
            document = self.parser.parse_file(path)
        except WorkflowError as e:
            result.errors.append(e)
            return result

        if document.metadata.name:
            log.prefix = document.metadata.name

        variables = VariableStore(base_url=document.config.base_url)
        base_dir = path.parent

        for step in document.workflow:
            try:
                self.parser.resolve_body(step, base_dir)
                self._executor.execute(step, variables, log)
            except WorkflowError as e:
                logger.debug("Step %r in %s failed: %s", step.step, path, e)
                result.errors.append(StepError(str(path), step.step, step.description, e))

        return result


def run_paths(
    paths: Iterable[str | Path],
    timeout: float = 30.0,
    verbose: bool = False,
) -> RunResult:
    """Convenience function to run workflow documents.

    Args:
        paths: Files or directories.
        timeout: Request timeout in seconds.
        verbose: Whether to emit detailed progress lines.

    Returns:
        RunResult with the progress lines and failures of every document.
    """
    with WorkflowRunner(timeout=timeout, verbose=verbose) as runner:
        return runner.run_paths(paths)
