"""Error taxonomy shared by the API, the compressor and the review client."""


class MenuAnalyzerError(Exception):
    status_code = 500
    public_error = "Failed to analyze menu"

    def __init__(self, message: str = ""):
        super().__init__(message or self.public_error)
        self.message = message or self.public_error


class InvalidImage(MenuAnalyzerError):
    status_code = 400
    public_error = "Invalid menu image"


class InvalidTarget(MenuAnalyzerError):
    pass


class CompressionExhausted(MenuAnalyzerError):
    def __init__(self, best_size: int, target: int):
        super().__init__(
            f"Could not compress image below {target} bytes (best: {best_size} bytes)"
        )
        self.best_size = best_size
        self.target = target


class MissingImage(MenuAnalyzerError):
    status_code = 400
    public_error = "No menu image provided"


class MissingPreferences(MenuAnalyzerError):
    status_code = 400
    public_error = "No dietary preferences provided"


class UploadTooLarge(MenuAnalyzerError):
    status_code = 413
    public_error = "Menu image is too large"


class CollaboratorCallFailed(MenuAnalyzerError):
    pass


class MalformedCollaboratorResponse(ValueError):
    """Model output held no usable JSON object. Never surfaced to clients."""
