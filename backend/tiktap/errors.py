"""Error taxonomy shared by adapters, the job store and the orchestrator.

Stage errors are caught once, at the orchestrator boundary, and turned into
a failed job. Only NotFoundError ever reaches an HTTP client directly.
"""


class TiktapError(Exception):
    """Base class for all pipeline errors."""


class ProviderError(TiktapError):
    """An upstream provider call returned a non-success response.

    The message carries the upstream body so it shows up in the job's
    status message.
    """

    def __init__(self, provider: str, detail: str, status_code: int | None = None):
        self.provider = provider
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{provider} error: {detail}")


class NotFoundError(TiktapError):
    """A required resource (job, artifact, stock footage) does not exist."""


class RenderFailedError(TiktapError):
    """The remote render service reported a failed render."""


class RenderTimeoutError(TiktapError):
    """The remote render did not finish within the polling budget."""


class AssemblyError(TiktapError):
    """A local media tool (ffmpeg) exited with a non-zero status."""


class InvalidTransitionError(TiktapError, ValueError):
    """A job update would move its status backwards or mutate a terminal job."""
