# Define the error types reported to users by the Psalms lookup pipeline


class PsalmLookupError(Exception):
    """Base class for errors that end a lookup with a user-facing message"""

    default_message = "Psalm lookup failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CorpusUnavailable(PsalmLookupError):
    default_message = "Psalms text is unavailable"


class NoReferenceRecognized(PsalmLookupError):
    default_message = "Could not understand the reference."


class NoVersesFound(PsalmLookupError):
    default_message = "No verses found"


class NormalizerFailed(PsalmLookupError):
    default_message = "AI normalization failed"


class NormalizerEmpty(PsalmLookupError):
    default_message = "AI returned empty output"


class LookupInProgress(PsalmLookupError):
    default_message = "A lookup is already in progress"
