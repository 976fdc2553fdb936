"""
Gateway error taxonomy.

Validation errors are the caller's fault and carry a human-readable
message safe to return as-is (HTTP 400). InternalFailure covers
everything else; its message stays generic and the detail goes to the
server logs only.
"""


class GatewayError(Exception):
    """Base exception for gateway errors."""
    status_code = 500


class TargetValidationError(GatewayError):
    """Raised when request parameters cannot produce a render."""
    status_code = 400


class AmbiguousTarget(TargetValidationError):
    """More than one of name / organisation_id / function_tag was supplied."""

    def __init__(self):
        super().__init__("Parameters name, organisation_id and function_tag are exclusive.")


class NoTarget(TargetValidationError):
    """None of the target parameters was supplied."""

    def __init__(self):
        super().__init__("One of name, organisation_id or function_tag is required.")


class InvalidPersonName(TargetValidationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            "Name parameter must be composed two words minimum: firstname lastname."
        )


class VerificationRequired(TargetValidationError):
    def __init__(self, organisation_id: str):
        self.organisation_id = organisation_id
        super().__init__(
            f"Verification is mandatory for organisation \"{organisation_id}\": "
            f"only Wikidata ids (Q12345) can be used without verification."
        )


class TargetNotFound(TargetValidationError):
    def __init__(self, kind: str, value: str):
        self.kind = kind
        self.value = value
        super().__init__(f"No result found on JORFSearch for {kind} \"{value}\".")


class AmbiguousDirectoryMatch(TargetValidationError):
    def __init__(self, value: str, count: int):
        self.value = value
        self.count = count
        super().__init__(
            f"Too many results found on JORFSearch for organisation \"{value}\" ({count})."
        )


class SizeFrameConflict(TargetValidationError):
    def __init__(self):
        super().__init__("Cannot use fixed size and frame at the same time.")


class InvalidSize(TargetValidationError):
    def __init__(self, raw: str, maximum: int):
        self.raw = raw
        super().__init__(f"Size must be an integer between 1 and {maximum}, got \"{raw}\".")


class InternalFailure(GatewayError):
    """Unexpected failure; never shown to clients beyond a generic message."""
    status_code = 500


class DirectoryUnavailable(InternalFailure):
    """The directory search could not be reached or answered with an error."""
    pass
