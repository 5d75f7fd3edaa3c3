
class BorrowTrackError(Exception): pass


class ValidationError(BorrowTrackError):
    """A field-level problem detected before any storage I/O."""

    def __init__(self, field, message):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class InvalidDateFormat(ValidationError):

    def __init__(self, value, field=None):
        super().__init__(field or "date", f"Invalid date: {value!r}")
        self.value = value


class RecordNotFound(BorrowTrackError):

    def __init__(self, storage_key):
        super().__init__(f"No borrowing record stored under {storage_key!r}")
        self.storage_key = storage_key


class StoreError(BorrowTrackError):
    """A failure reported by the document database, code and message preserved."""

    def __init__(self, code, message):
        super().__init__(f"({code}) {message}" if code else message)
        self.code = code
        self.message = message


class DocumentNotFound(StoreError):

    def __init__(self, path):
        super().__init__("not-found", f"No document at {'/'.join(path)}")
        self.path = tuple(path)


class AuthenticationError(BorrowTrackError): pass
