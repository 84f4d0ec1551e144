# aidetect/core/errors.py


class DetectionError(Exception):
    """Base class for everything that can keep a submission from being analyzed."""


class TransportError(DetectionError):
    """Network failure, timeout, non-2xx status or unparseable body."""


class RemoteError(DetectionError):
    """Well-formed response from the detection service reporting an error."""


class NotConfigured(DetectionError):
    """Missing credential, or detection switched off for the module."""


class NotFound(DetectionError):
    pass
