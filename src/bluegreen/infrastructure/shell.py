"""External command execution for cluster tooling.

Every interaction with ``kubectl``, ``helm``, ``aws`` and ``gcloud`` goes
through a ``CommandRunner`` so that tests can substitute a scripted runner
and so that commands are logged uniformly with secrets masked.
"""

from __future__ import annotations

import logging
import re
import subprocess
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from bluegreen.domain.exceptions import CommandError, CommandTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Each pattern's first group is kept; whatever follows it is replaced.
DEFAULT_SENSITIVE_PATTERNS: tuple[str, ...] = (
    r"(?i)((?:password|passwd|secret|token|api[_-]?key)=)\S+",
    r"(?i)(--(?:password|token)\s+)\S+",
)


def mask_sensitive(text: str, patterns: Iterable[str] = DEFAULT_SENSITIVE_PATTERNS) -> str:
    """Replace the value part of every sensitive ``key=value`` / flag in *text*."""
    masked = text
    for pattern in patterns:
        masked = re.sub(pattern, r"\1****", masked)
    return masked


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs argv-style commands with ``subprocess.run`` (never through a shell).

    Parameters
    ----------
    default_timeout:
        Timeout in seconds applied when ``run`` is not given one.
    """

    def __init__(self, default_timeout: float | None = 600.0) -> None:
        self._default_timeout = default_timeout

    def run(
        self,
        args: Sequence[str],
        *,
        timeout: float | None = None,
        check: bool = True,
        input: str | None = None,
    ) -> CommandResult:
        """Execute *args* and capture stdout/stderr as text.

        Raises ``CommandTimeout`` when the process exceeds *timeout* and
        ``CommandError`` on a non-zero exit when *check* is set.
        """
        argv = tuple(str(a) for a in args)
        bound = timeout if timeout is not None else self._default_timeout
        logger.debug("exec: %s", mask_sensitive(" ".join(argv)))
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=bound,
                input=input,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeout(
                f"{argv[0]} timed out after {bound}s",
                command=argv,
                timeout=bound or 0.0,
            ) from exc
        except FileNotFoundError as exc:
            raise CommandError(
                f"executable not found: {argv[0]}",
                command=argv,
                returncode=127,
            ) from exc

        result = CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if check and not result.ok:
            raise CommandError(
                f"{argv[0]} exited with status {result.returncode}: "
                f"{mask_sensitive(result.stderr.strip())}",
                command=argv,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result


def retry(
    action: Callable[[], T],
    attempts: int = 3,
    initial_delay: float = 1.0,
    sleep_fn: Callable[[float], None] = time.sleep,
    retry_on: tuple[type[BaseException], ...] = (CommandError,),
) -> T:
    """Call *action* until it succeeds, doubling the delay after each failure.

    The last exception is re-raised once *attempts* are exhausted.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    delay = initial_delay
    for attempt in range(1, attempts + 1):
        try:
            return action()
        except retry_on as exc:
            if attempt == attempts:
                raise
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.1fs",
                attempt,
                attempts,
                exc,
                delay,
            )
            sleep_fn(delay)
            delay *= 2
    raise AssertionError("unreachable")
