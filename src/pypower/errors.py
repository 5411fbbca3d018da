"""Error taxonomy for pypower.

None of these escape the controller: they are stored on the model as
``last_error`` (or next to the field they affect) and rendered as a status line.
"""


class PowerError(Exception):
    """Base class for all pypower errors."""


class ConfigError(PowerError, ValueError):
    """The configuration file could not be loaded or is invalid."""


class ReadError(PowerError):
    """A battery or governor read failed (permission, missing file, bad content)."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class SwitchRejected(PowerError):
    """A switch was requested while another one was still pending."""

    def __init__(self, target_name: str) -> None:
        super().__init__(f"Switch to {target_name} rejected: a switch is already in progress")
        self.target_name = target_name


class SwitchError(PowerError):
    """The switch command exited non-zero or could not be launched."""

    def __init__(self, reason: str, exit_status: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.exit_status = exit_status


class SwitchTimeout(PowerError):
    """A pending switch exceeded the UI wait budget; its real outcome is unknown."""

    def __init__(self, target_name: str, timeout: float) -> None:
        super().__init__(
            f"Switch to {target_name} timed out after {timeout:g}s; "
            "the command may still be running"
        )
        self.target_name = target_name
        self.timeout = timeout
