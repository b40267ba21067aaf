"""Error taxonomy for the masking/submission pipeline.

Validation and incomplete-mask errors are raised before any network call.
Transport and dimension errors come back from the worker and are reported
once at the submission boundary; local canvas state is never touched.
"""


class PatchPairError(Exception):
    """Base class for all errors raised by the patchpair package."""


class ValidationError(PatchPairError):
    """Unsupported file type, missing image, or no paired colors."""


class SubmissionInProgress(ValidationError):
    def __init__(self, message='a submission is already in progress'):
        super().__init__(message)


class IncompleteMaskError(PatchPairError):
    """A color is active on one canvas only, or its mask rasterized empty."""

    def __init__(self, message, color=None):
        super().__init__(message)
        self.color = color


class NoValidPairs(IncompleteMaskError):
    def __init__(self, message='no valid, complete mask pairs were generated'):
        super().__init__(message)


class ClassificationError(PatchPairError):
    """Auto routing failed; callers fall back to 'generate'."""


class TransportError(PatchPairError):
    """Network failure or non-2xx response from the worker."""

    def __init__(self, message, status=None, body=None):
        super().__init__(message)
        self.status = status
        self.body = body


class DimensionMismatch(PatchPairError):
    """Worker returned an image whose size differs from the source."""

    def __init__(self, expected, actual, blob=None):
        ew, eh = expected
        aw, ah = actual
        super().__init__(f"Dimension mismatch: expected {ew}x{eh}, but received {aw}x{ah}.")
        self.expected = (int(ew), int(eh))
        self.actual = (int(aw), int(ah))
        self.blob = blob
