from typing import Optional


class NotificationError(Exception):
    """Base class for notification failures"""


class EmailSendError(NotificationError):
    """A notification could not be rendered or handed to the mail transport"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause
