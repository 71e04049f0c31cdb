from __future__ import annotations


class ConsoleError(Exception):
    pass


class SchemaValidationError(ConsoleError):
    def __init__(self, kind: str, detail: str) -> None:
        super().__init__(f'{kind}: {detail}')
        self.kind = kind
        self.detail = detail


class UpstreamError(ConsoleError):
    """Transport failure talking to the backend (timeouts, refused connections, bad JSON)."""


class UpstreamHTTPError(UpstreamError):
    def __init__(self, status: int, path: str, body: str = '') -> None:
        super().__init__(f'Upstream error {status} on {path}: {body}')
        self.status = status
        self.path = path
        self.body = body


class CsrfTokenError(ConsoleError):
    pass


class FormValidationError(ConsoleError):
    def __init__(self, field_errors: dict[str, str]) -> None:
        super().__init__('; '.join(f'{field}: {message}' for field, message in field_errors.items()))
        self.field_errors = field_errors


class SaveRejectedError(ConsoleError):
    pass
