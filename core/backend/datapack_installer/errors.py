"""
Datapack installer errors.
"""


class DatapackInstallerError(Exception):
    """Base class for every error surfaced to callers."""

    status_code = 500
    error_code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(DatapackInstallerError):
    """Required input is missing or empty."""

    status_code = 400
    error_code = "INVALID_REQUEST"


class NotFound(DatapackInstallerError):
    """Server, node or world does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"


class UpstreamError(DatapackInstallerError):
    """Vanilla Tweaks failed, refused the request, or was unreachable."""

    error_code = "FETCH_ERROR"


class RemoteDaemonError(DatapackInstallerError):
    """Wings could not be reached or refused a read."""

    error_code = "LIST_ERROR"


class RemoteWriteError(RemoteDaemonError):
    """Wings reported a failed file write."""

    error_code = "INSTALL_ERROR"


class InstallError(DatapackInstallerError):
    """The downloaded archive could not be handled locally."""

    error_code = "INSTALL_ERROR"
