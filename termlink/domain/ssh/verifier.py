"""
Trust-On-First-Use host key verification
"""
from typing import Optional

import paramiko

from ...core.channels import HostKeyDecision
from ...core.constants import EVENT_SEND_TIMEOUT, HOST_KEY_DECISION_TIMEOUT
from ...core.events import EventSender, HostKeyUnknown
from ...core.exceptions import ChannelError
from ...core.logging import get_logger
from .known_hosts import STORE_ERRORS, KnownHostsStore, fingerprint
from .models import HostKeyStatus

logger = get_logger(__name__)


class HostKeyVerifier:
    """
    TOFU policy over a known_hosts store.

    1. Known key        -> accepted silently
    2. Changed key      -> MITM warning, consumer decides, replaced if accepted
    3. Unknown host     -> consumer decides, learned if accepted

    Unanswered questions are rejected after decision_timeout seconds.
    """

    def __init__(
        self,
        store: Optional[KnownHostsStore] = None,
        decision_timeout: Optional[float] = HOST_KEY_DECISION_TIMEOUT,
    ):
        self.store = store or KnownHostsStore()
        self.decision_timeout = decision_timeout

    async def verify(
        self,
        host: str,
        port: int,
        key: paramiko.PKey,
        events: EventSender,
    ) -> bool:
        """
        Decide whether to trust the key a server presented.

        Args:
            host: Host name as given by the user
            port: SSH port
            key: Server public key
            events: Channel used to ask the consumer

        Returns:
            True to continue the handshake, False to abort it
        """
        key_type = key.get_name()
        key_fingerprint = fingerprint(key)
        status = self.store.check(host, port, key)

        if status == HostKeyStatus.KNOWN:
            logger.info(f"Known host key for {host}:{port} ({key_type}), accepted")
            return True

        is_key_changed = status == HostKeyStatus.CHANGED
        if is_key_changed:
            logger.warning(
                f"HOST KEY CHANGED for {host}:{port}, possible man-in-the-middle! "
                f"Presented {key_type} {key_fingerprint}"
            )
        else:
            logger.info(f"Unknown host {host}:{port}, asking for confirmation")

        accepted = await self._ask(host, key_type, key_fingerprint, is_key_changed, events)
        if not accepted:
            logger.warning(f"Host key for {host}:{port} rejected")
            return False

        try:
            self.store.learn(host, port, key)
            logger.info(f"Host key for {host}:{port} saved to {self.store.path}")
        except STORE_ERRORS as e:
            logger.warning(f"Unable to save host key to {self.store.path}: {e}")
        return True

    async def _ask(
        self,
        host: str,
        key_type: str,
        key_fingerprint: str,
        is_key_changed: bool,
        events: EventSender,
    ) -> bool:
        decision = HostKeyDecision()
        challenge = HostKeyUnknown(
            host=host,
            key_type=key_type,
            fingerprint=key_fingerprint,
            is_key_changed=is_key_changed,
            decision=decision,
        )
        try:
            await events.send(challenge, timeout=EVENT_SEND_TIMEOUT)
        except ChannelError as e:
            logger.warning(f"Host key question for {host} could not be delivered: {e}")
            decision.reject()
            return False

        return await decision.wait(self.decision_timeout)
