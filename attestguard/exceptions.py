"""
Exceptions for the attestguard package.

Every exception keeps the values that distinguish it as attributes so a
caller can decide whether to surface the failure, abandon the operation or
try another attestation channel.
"""
from typing import Any, Optional


def _short_hex(value: Any) -> str:
    """Render bytes/int values compactly for error messages."""
    if isinstance(value, (bytes, bytearray)):
        hexed = bytes(value).hex()
        if len(hexed) > 16:
            return f"0x{hexed[:8]}…{hexed[-8:]}"
        return f"0x{hexed}"
    return str(value)


class AttestGuardError(Exception):
    """Base exception for all attestguard errors."""
    pass


class DecodeError(AttestGuardError):
    """Base exception for failures while decoding calldata or RLP."""
    pass


class LengthError(DecodeError):
    """Raised when a buffer is shorter than the shape being decoded requires."""

    def __init__(self, required: int, actual: int, what: str = "buffer"):
        self.required = required
        self.actual = actual
        self.what = what
        super().__init__(f"{what} too short: need at least {required} bytes, got {actual}")


class StructuralDecodeError(DecodeError):
    """Raised when a buffer is long enough but does not parse into the expected shape."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ValidityError(DecodeError):
    """Raised when a structurally valid record fails a semantic check."""

    def __init__(self, reason: str, record: Optional[Any] = None):
        self.reason = reason
        self.record = record
        super().__init__(reason)


class UnsupportedShapeError(DecodeError):
    """Raised for an unrecognized type tag, selector or call shape."""

    def __init__(self, shape: Any):
        self.shape = shape
        super().__init__(f"Unsupported shape: {_short_hex(shape)}")


class ReconciliationError(AttestGuardError):
    """Base exception for attested-vs-inferred mismatches."""
    pass


class ArityError(ReconciliationError):
    """Raised when the attested and inferred sequences have incompatible lengths."""

    def __init__(self, attested: int, inferred: int):
        self.attested = attested
        self.inferred = inferred
        super().__init__(
            f"Arity mismatch: {attested} attested record(s) vs {inferred} inferred record(s)"
        )


class NoMatchError(ReconciliationError):
    """Raised when no unconsumed inferred record matches an attested record's key."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"No inferred execution matches attested key {key}")


class AmountBoundError(ReconciliationError):
    """Raised when a matched pair violates the integration's amount direction."""

    def __init__(self, inferred: int, attested: int, direction: Any = None):
        self.inferred = inferred
        self.attested = attested
        self.direction = direction
        label = getattr(direction, "value", direction)
        super().__init__(
            f"Amount bound violated ({label}): inferred {inferred}, attested {attested}"
        )


class SignatureError(AttestGuardError):
    """Raised when no recovery convention yields the expected signer."""

    def __init__(self, expected: str, recovered: Optional[Any] = None):
        self.expected = expected
        self.recovered = recovered
        super().__init__(f"Signature does not recover to {expected} (recovered: {recovered})")


class CommitmentMismatchError(AttestGuardError):
    """Raised when an embedded commitment differs from the expected hash."""

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Commitment mismatch: expected {_short_hex(expected)}, got {_short_hex(actual)}"
        )


class PermitSubmissionError(AttestGuardError):
    """Raised when forwarding a validated permit to the token fails."""
    pass
