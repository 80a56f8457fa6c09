class AnalysisServiceError(RuntimeError):
    """The analysis call failed, returned nothing, or returned an invalid payload."""


class SpeechServiceError(RuntimeError):
    """The speech call failed or returned no audio."""


class PersistedStateError(ValueError):
    """Stored history could not be read back."""


class SubmissionRejected(ValueError):
    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.status_code = status_code
