class AdmissionException(Exception):
    """Base exception for failures while deciding an admission request."""

    status_code = 500


class MalformedRequestException(AdmissionException):
    """The admission review is missing required fields or cannot be decoded."""

    status_code = 400


class UnsupportedKindException(AdmissionException):
    """The workload kind does not carry a pod specification we know how to find."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"error validating kind - [{kind}]")


class ResourceConversionException(AdmissionException):
    """The nested pod specification could not be converted to a typed object."""


class PolicyViolationException(AdmissionException):
    """A registered validation rule rejected the workload."""

    status_code = 403


class ResponseSerializationException(AdmissionException):
    """The admission response could not be rendered."""
