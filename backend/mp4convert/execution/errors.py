"""
Execution-specific errors.

All errors are non-fatal to the application.
They indicate that one job failed to convert; the server keeps running.
"""


class ExecutionError(Exception):
    """
    Base exception for execution failures.

    These errors are recorded on the job as FAILED, never raised to a client.
    """

    pass


class TranscodeError(ExecutionError):
    """
    The transcoder reported a failure.

    The message is stored verbatim as the job's error:
    - FFmpeg exited non-zero
    - Output file missing after a clean exit
    """

    pass


class EngineUnavailableError(TranscodeError):
    """The transcoder binary could not be found on this system."""

    pass
