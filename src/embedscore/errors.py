"""Custom embedscore exceptions."""


class EmbedScoreError(Exception):
    """Base exception for embedscore errors."""

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class ProviderError(EmbedScoreError):
    """Exception raised when the embedding provider fails.

    This typically occurs when:
    - The provider is unreachable or the request timed out
    - Rate limits or quotas are exceeded (429 error)
    - The provider returned an error status or an unusable payload
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """Exception raised when the provider rejects or lacks credentials."""

    pass


class CacheIOError(EmbedScoreError):
    """Exception raised when the persisted embedding store cannot be written."""

    pass


class DimensionMismatch(EmbedScoreError, ValueError):
    """Exception raised when two vectors of different length are compared."""

    def __init__(self, left: tuple[int, ...], right: tuple[int, ...]) -> None:
        super().__init__(
            f"Cannot compare vectors with shapes {left} and {right}"
        )
        self.left = left
        self.right = right


class DegenerateVectorError(EmbedScoreError, ValueError):
    """Exception raised for vectors no metric can score: NaN or infinite values,
    or zero magnitude under cosine similarity.
    """

    pass


class TestCaseError(EmbedScoreError):
    """Exception raised for malformed test-case documents."""

    __test__ = False


class ConfigError(EmbedScoreError):
    """Exception raised for invalid configuration values."""

    pass
