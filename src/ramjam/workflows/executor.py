"""Step executor for workflow documents.

Builds and sends the request of a single step, checks its expectations and
stores captured values for the steps that follow.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from typing import Any

import httpx

from ramjam.workflows.errors import CaptureError, PathQueryError, RequestFailedError, ResponseParseError
from ramjam.workflows.expressions import VariableStore, stringify
from ramjam.workflows.models import CaptureConfig, WorkflowStep
from ramjam.workflows.paths import NO_JSON, evaluate_path
from ramjam.workflows.validator import ResponseValidator

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "ramjam-cli"


class StepExecutor:
    """Executes workflow steps against a shared HTTP client."""

    def __init__(
        self,
        client: httpx.Client,
        verbose: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            client: HTTP client used for every request.
            verbose: Whether to emit detailed progress lines.
            user_agent: Value of the `User-Agent` header sent by default.
            timeout: Limit in seconds for a whole request, from sending it to
                reading the last byte of the response body.
        """
        self.client = client
        self.verbose = verbose
        self.user_agent = user_agent
        self.timeout = timeout

    def execute(self, step: WorkflowStep, variables: VariableStore, log: Callable[[str], None]) -> None:
        """Execute a single step.

        Captured values are written into `variables`.

        Args:
            step: The step to execute.
            variables: Variables of the document the step belongs to.
            log: Receives progress lines.

        Raises:
            WorkflowError: If the request, an expectation or a capture fails.
        """
        trace = log if self.verbose else None
        if trace:
            trace(f"Executing step: {step.step}")

        response, raw = self._send(step, variables, trace)
        if trace:
            trace(f"Received status: {response.status_code}")

        validator = ResponseValidator(variables, trace)
        validator.validate_status(step.expect, response.status_code)
        validator.validate_headers(step.expect.headers, response.headers)

        body = self._parse_body(raw)
        validator.validate_json_paths(step.expect.json_path_match, body)

        for capture in step.capture:
            value = self._capture(capture, response, body)
            if trace:
                trace(f"Captured {capture.as_var} => {value}")
            variables[capture.as_var] = value

        if step.output.print_template:
            log(variables.substitute(step.output.print_template))

    def _send(
        self,
        step: WorkflowStep,
        variables: VariableStore,
        trace: Callable[[str], None] | None,
    ) -> tuple[httpx.Response, bytes]:
        """Send the request and read the whole response body."""
        request = step.request
        method = request.get_method()
        url = self._build_url(variables.substitute(request.url), variables.get("base_url", ""))

        headers = httpx.Headers({"User-Agent": self.user_agent})
        content = None
        if request.resolved_body:
            body = variables.substitute(request.resolved_body)
            try:
                # YAML dates and times are sent as ISO strings
                content = json.dumps(body, default=str).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise RequestFailedError(str(e), stage="marshal body") from e
            headers["Content-Type"] = "application/json"
            if trace and request.body_source:
                trace(f"Using body from: {request.body_source}")

        for name, value in request.headers.items():
            headers[name] = variables.substitute(value)

        params = variables.substitute(request.params) or None

        logger.debug("%s %s", method, url)
        deadline = time.monotonic() + self.timeout if self.timeout else None
        try:
            outgoing = self.client.build_request(method, url, headers=headers, params=params, content=content)
            response = self.client.send(outgoing, stream=True)
            try:
                chunks = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    self._check_deadline(deadline)
                self._check_deadline(deadline)
            finally:
                response.close()
        except httpx.InvalidURL as e:
            raise RequestFailedError(str(e), stage="build request") from e
        except httpx.RequestError as e:
            raise RequestFailedError(str(e) or type(e).__name__) from e
        return response, b"".join(chunks)

    def _check_deadline(self, deadline: float | None) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise RequestFailedError(f"timeout of {self.timeout}s exceeded while awaiting the response")

    @staticmethod
    def _build_url(url: str, base_url: str) -> str:
        if url.startswith(("http://", "https://")) or not base_url:
            return url
        return f"{base_url.rstrip('/')}/{url.lstrip('/')}"

    @staticmethod
    def _parse_body(raw: bytes) -> Any:
        if not raw:
            return NO_JSON
        try:
            return json.loads(raw)
        except ValueError as e:
            raise ResponseParseError(str(e)) from e

    def _capture(self, capture: CaptureConfig, response: httpx.Response, body: Any) -> str:
        """Extract the value of a single capture."""
        if capture.json_path and capture.header:
            raise CaptureError(capture.as_var, "capture must specify only one of json_path or header")
        if capture.json_path:
            try:
                return stringify(evaluate_path(body, capture.json_path))
            except PathQueryError as e:
                raise CaptureError(capture.as_var, f"capture json_path {capture.json_path}: {e}") from e

        if capture.header:
            value = response.headers.get(capture.header, "")
            if not capture.regex:
                return value
            try:
                pattern = re.compile(capture.regex)
            except re.error as e:
                raise CaptureError(capture.as_var, f"invalid regex {capture.regex}: {e}") from e
            match = pattern.search(value)
            if match is None:
                raise CaptureError(
                    capture.as_var,
                    f'regex {capture.regex} did not match header {capture.header} value "{value}"',
                )
            if pattern.groups:
                return match.group(1) or ""
            return match.group(0)

        raise CaptureError(capture.as_var, "capture must specify json_path or header")
