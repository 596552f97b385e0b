"""Exceptions raised by the shiftctl engines.

Engines raise these and never exit the process; the CLI layer turns them
into a non-zero exit status.
"""


class ShiftctlError(Exception):
    """Base class for all shiftctl failures."""
    pass


class DownloadError(ShiftctlError):
    """Network or HTTP failure while fetching an asset."""
    pass


class ExtractionError(ShiftctlError):
    """Archive is corrupt or in an unsupported format."""
    pass


class UnexpectedLayoutError(ShiftctlError):
    """Archive content does not have exactly one top-level entry."""
    pass


class FilesystemError(ShiftctlError):
    """Local temp dir, copy or permission failure."""
    pass


class RemoteCommandError(ShiftctlError):
    """A command run over the remote channel failed."""

    def __init__(self, command: str, message: str, exit_status: int = None):
        self.command = command
        self.exit_status = exit_status
        super().__init__(message)


class UnsupportedPlatformError(ShiftctlError):
    """The guest does not pass a capability gate."""
    pass


class TemplateRenderError(ShiftctlError):
    """A script or unit template could not be rendered."""
    pass


class ProvisioningError(ShiftctlError):
    """A certificate copy, generation or transfer step failed."""
    pass
