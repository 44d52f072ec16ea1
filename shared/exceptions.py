"""RFC 9457 Problem Details exception hierarchy.

All API errors extend ProblemDetailError and are converted to
application/problem+json responses by the exception handler middleware.
SignatureError is the exception: the webhook contract answers in plain text.
"""

NOT_LINKED_MESSAGE = "Patient not linked to Oura account"


class ProblemDetailError(Exception):
    def __init__(
        self,
        type_uri: str,
        title: str,
        status: int,
        detail: str,
        violations: list[dict] | None = None,
    ):
        self.type_uri = type_uri
        self.title = title
        self.status = status
        self.detail = detail
        self.violations = violations
        super().__init__(detail)


class ValidationError(ProblemDetailError):
    def __init__(self, detail: str, violations: list[dict] | None = None):
        super().__init__(
            type_uri="https://api.oura-service.dev/problems/validation-error",
            title="Validation Error",
            status=400,
            detail=detail,
            violations=violations,
        )


class NotLinkedError(ProblemDetailError):
    def __init__(self, patient_id: str):
        self.patient_id = patient_id
        super().__init__(
            type_uri="https://api.oura-service.dev/problems/not-linked",
            title="Not Found",
            status=404,
            detail=NOT_LINKED_MESSAGE,
        )


class UpstreamError(ProblemDetailError):
    """Any non-2xx or transport failure from the Oura API.

    upstream_status is None for network failures.
    """

    def __init__(self, detail: str, upstream_status: int | None = None):
        self.upstream_status = upstream_status
        super().__init__(
            type_uri="https://api.oura-service.dev/problems/upstream-error",
            title="Upstream Error",
            status=500,
            detail=detail,
        )


class SignatureError(ProblemDetailError):
    def __init__(self, detail: str):
        super().__init__(
            type_uri="https://api.oura-service.dev/problems/invalid-signature",
            title="Unauthorized",
            status=401,
            detail=detail,
        )
