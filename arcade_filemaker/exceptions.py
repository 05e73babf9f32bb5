from arcade_tdk.errors import RetryableToolError, UpstreamError

from arcade_filemaker.models import FileMakerMessage


class FileMakerValidationError(RetryableToolError):
    """Raised when tool arguments are missing or invalid. Nothing has been sent yet."""

    def __init__(self, message: str, additional_prompt_content: str | None = None):
        super().__init__(
            message,
            developer_message=f"Invalid arguments: {message}",
            additional_prompt_content=additional_prompt_content
            or "Please check the arguments and try again.",
            retry_after_ms=0,
        )


class FileMakerRemoteError(UpstreamError):
    """Raised when the FileMaker Data API rejects a request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        messages: list[FileMakerMessage] | None = None,
    ):
        self.messages = messages or []
        details = "; ".join(f"Error {msg.code}: {msg.message}" for msg in self.messages)
        super().__init__(
            f"{message} - {details}" if details else message,
            status_code=status_code,
            developer_message=(
                f"FileMaker Data API returned HTTP {status_code}"
                + (f" with messages: {details}" if details else "")
            ),
            extra={"filemaker_codes": [msg.code for msg in self.messages]},
        )

    @property
    def codes(self) -> list[str]:
        return [msg.code for msg in self.messages]


class FileMakerAuthError(FileMakerRemoteError):
    """Raised when the session token is missing, expired or the credentials are rejected."""


class FileMakerNotFoundError(FileMakerRemoteError):
    """Raised when a layout, table or record does not exist."""

