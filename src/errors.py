"""Error taxonomy for a visual diff run.

Every error here is fatal for the run that raised it. Nothing is retried;
the orchestrator releases the browser session and re-raises.
"""

from __future__ import annotations


class VisualDiffError(RuntimeError):
    """Base class for failures that abort a run."""


class SessionError(VisualDiffError):
    """The browser session failed or went away."""


class SessionInitError(SessionError):
    """The remote browser session could not be started."""


class PageScriptError(VisualDiffError):
    """The harness page reported JavaScript errors while loading."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        joined = "\n".join(f"  {e}" for e in self.errors)
        super().__init__(f"JavaScript errors found during initialization:\n{joined}")


class NoExamplesError(VisualDiffError):
    """The harness page did not expose any examples."""


class RenderError(VisualDiffError):
    """A single example failed to render (or timed out)."""

    def __init__(self, description: str, message: str):
        self.description = description
        super().__init__(f'Error rendering "{description}":\n  {message}')


class PersistenceError(VisualDiffError):
    """Reading or writing a snapshot artifact failed."""


class ConfigurationError(VisualDiffError, ValueError):
    """The configuration references something that does not exist."""


class AlignmentTooLargeError(VisualDiffError, ValueError):
    """Row counts exceed the configured alignment cap."""
