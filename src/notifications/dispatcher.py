from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional
import logging

from src.notifications.exceptions import EmailSendError
from src.notifications.mailer import MailTransport
from src.notifications.schemas import OutgoingEmail

logger = logging.getLogger(__name__)


class EmailDispatcher:
    """Fire-and-forget email delivery on a background thread pool.

    The message is built and sent inside the worker. Any failure becomes an
    EmailSendError carrying the notification's failure message; it is logged
    in the worker and left on the returned Future. Nothing is retried and
    sends are not ordered relative to each other.
    """

    def __init__(
        self,
        transport: MailTransport,
        executor: Optional[Executor] = None,
        max_workers: int = 4
    ):
        self.transport = transport
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="email"
        )

    def dispatch(self, build: Callable[[], OutgoingEmail], failure_message: str) -> Future:
        return self._executor.submit(self._deliver, build, failure_message)

    def _deliver(self, build: Callable[[], OutgoingEmail], failure_message: str) -> OutgoingEmail:
        recipient = None
        try:
            message = build()
            recipient = message.to
            self.transport.send(message)
        except Exception as e:
            logger.exception("%s: %s", failure_message, e, extra={"to_email": recipient})
            raise EmailSendError(failure_message, e) from e
        return message

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
