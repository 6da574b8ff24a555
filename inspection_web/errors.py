"""Exception types raised by the form state manager and the items API client."""


class FormStateError(Exception):
    """Raised when the form state manager is driven incorrectly.

    Unknown field names, operations on an idle manager and defect categories
    outside the closed set all end up here. These signal a bug in the caller,
    not bad user input (user input only ever produces validation messages).
    """


class ItemsApiError(Exception):
    """Raised when the remote items API fails or cannot be reached.

    ``status_code`` is 0 for transport errors (connection refused, timeout).
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"items api {status_code}: {message}")
