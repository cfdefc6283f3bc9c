from enum import Enum


class RejectReason(str, Enum):
    MALFORMED_ENCODING = "MalformedEncoding"
    MALFORMED_NODE = "MalformedNode"
    MISSING_NODE = "MissingNode"
    HASH_MISMATCH = "HashMismatch"
    DEPTH_EXCEEDED = "DepthExceeded"


class ProofError(ValueError):
    """
    Raised when a proof cannot decide a key.
    Each subclass maps to one machine-readable RejectReason.
    """

    reason = None  # type: RejectReason

    def __init__(self, message: str = ""):
        super().__init__(message or (self.reason.value if self.reason else ""))


class MalformedEncoding(ProofError):
    reason = RejectReason.MALFORMED_ENCODING


class MalformedNode(ProofError):
    reason = RejectReason.MALFORMED_NODE


class MissingNode(ProofError):
    reason = RejectReason.MISSING_NODE


class HashMismatch(ProofError):
    reason = RejectReason.HASH_MISMATCH


class DepthExceeded(ProofError):
    reason = RejectReason.DEPTH_EXCEEDED
