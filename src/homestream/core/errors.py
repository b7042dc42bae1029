"""homestream exceptions for error handling."""


class HomestreamError(Exception):
    """Base exception for homestream operations."""

    pass


class NotFoundError(HomestreamError):
    """Raised when a requested resource does not exist."""

    pass


class SourceNotFoundError(NotFoundError):
    """Raised when the source audio file is absent from the music directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Audio file not found: {name}")


class ArtifactNotFoundError(NotFoundError):
    """Raised when an HLS manifest or segment is absent."""

    pass


class CoverNotFoundError(NotFoundError):
    """Raised when a track has no embedded cover art."""

    pass


class InvalidInputError(HomestreamError):
    """Raised for client input that must not be processed further."""

    pass


class InvalidFilenameError(InvalidInputError):
    """Raised when a filename is not a bare name inside the music directory."""

    pass


class InvalidSegmentError(InvalidInputError):
    """Raised when an HLS segment id is malformed or attempts path traversal."""

    pass


class RangeNotSatisfiableError(InvalidInputError):
    """Raised when a Range header cannot be satisfied for a resource."""

    def __init__(self, size: int, header: str = ""):
        self.size = size
        self.header = header
        super().__init__(f"Range not satisfiable: {header!r} (size={size})")


class MetadataParseError(HomestreamError):
    """Raised when an audio file's tags cannot be parsed."""

    pass


class TranscodeLaunchError(HomestreamError):
    """Raised when the external transcoder could not be started."""

    def __init__(self, name: str, detail: str):
        self.name = name
        self.detail = detail
        super().__init__(f"Failed to start transcode for {name}: {detail}")
