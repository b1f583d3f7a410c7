"""Subscribe and confirm flows built on signed confirmation tokens."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Protocol
from uuid import UUID

from ..domain import EmailAddress, PersonName, ValidationError
from ..token import SigningKey, Token, TokenError, as_uuid
from ..utils.time import Clock, utc_now
from .email_client import Email, EmailDeliveryError
from .storage import DuplicateSubscription, NewSubscription, SubscriptionStorage

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def send(self, email: Email) -> None: ...


class SubscribeError(Exception):
    """Base error for subscription flows; ``status_code`` is the HTTP answer."""

    status_code = 500


class InvalidSubscriberError(SubscribeError):
    status_code = 400


class AlreadySubscribedError(SubscribeError):
    status_code = 409


class SubscriptionNotFound(SubscribeError):
    status_code = 404


class TokenSigningError(SubscribeError):
    status_code = 500


class SendEmailError(SubscribeError):
    status_code = 500


class TokenVerificationError(SubscribeError):
    """Wraps the TokenError raised while checking a confirmation link."""

    def __init__(self, cause: TokenError) -> None:
        super().__init__(str(cause))
        self.cause = cause
        self.reason = cause.reason
        self.status_code = cause.status_code


def build_confirmation_email(name: PersonName, recipient: EmailAddress, confirmation_url: str) -> Email:
    return Email(
        recipient=recipient,
        subject=f"Welcome {name}!",
        html_body=(
            "<h1>Welcome to our newsletter!</h1>"
            f'<p>Click <a href="{confirmation_url}">here</a> to confirm your subscription.</p>'
        ),
        text_body=f"Welcome to our newsletter!\n\nTo confirm your subscription, visit this web page: {confirmation_url}",
    )


class SubscriptionService:
    """Create subscriptions and confirm them from emailed token links."""

    def __init__(
        self,
        *,
        storage: SubscriptionStorage,
        email_client: EmailSender,
        signing_key: SigningKey,
        base_url: str,
        confirmation_ttl: Optional[timedelta] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.storage = storage
        self.email_client = email_client
        self.signing_key = signing_key
        self.base_url = base_url.rstrip("/")
        self.confirmation_ttl = confirmation_ttl
        self.clock = clock

    def confirmation_url(self, token: Token) -> str:
        return f"{self.base_url}/subscriptions/confirm/{token}"

    def sign_confirmation(self, subscription_id: UUID) -> Token:
        builder = Token.builder(subscription_id, clock=self.clock)
        if self.confirmation_ttl is not None:
            builder.expires_in(self.confirmation_ttl)
        return builder.sign(self.signing_key)

    async def subscribe(self, *, name: str, email: str) -> UUID:
        try:
            new_subscription = NewSubscription(name=PersonName.parse(name), email=EmailAddress.parse(email))
        except ValidationError as exc:
            raise InvalidSubscriberError(str(exc)) from exc

        try:
            subscription_id = await self.storage.insert(new_subscription)
        except DuplicateSubscription as exc:
            raise AlreadySubscribedError("email address is already subscribed") from exc

        try:
            token = self.sign_confirmation(subscription_id)
            message = build_confirmation_email(
                new_subscription.name, new_subscription.email, self.confirmation_url(token)
            )
            await self.email_client.send(message)
        except TokenError as exc:
            await self.storage.delete(subscription_id)
            logger.error("failed to sign confirmation token: %s", exc.reason)
            raise TokenSigningError("failed to sign confirmation token") from exc
        except EmailDeliveryError as exc:
            await self.storage.delete(subscription_id)
            logger.warning("failed to send confirmation email: %s", exc)
            raise SendEmailError("failed to send confirmation email") from exc
        except BaseException:
            await self.storage.delete(subscription_id)
            raise

        logger.info("subscription %s created, confirmation sent", subscription_id)
        return subscription_id

    async def confirm(self, raw_token: str) -> UUID:
        try:
            subscription_id = Token.parse(raw_token).verify(self.signing_key, decoder=as_uuid, clock=self.clock)
        except TokenError as exc:
            logger.warning("confirmation token rejected: %s", exc.reason)
            raise TokenVerificationError(exc) from exc

        if not await self.storage.confirm_by_id(subscription_id):
            raise SubscriptionNotFound(f"no subscription {subscription_id}")
        logger.info("subscription %s confirmed", subscription_id)
        return subscription_id

    async def confirmed_recipients(self) -> list[EmailAddress]:
        """Confirmed addresses, skipping stored rows that no longer validate."""
        recipients: list[EmailAddress] = []
        for subscription in await self.storage.fetch_all_confirmed():
            try:
                recipients.append(EmailAddress.parse(subscription.email))
            except ValidationError as exc:
                logger.warning(
                    "skipping confirmed subscription %s with invalid email %r: %s",
                    subscription.id,
                    subscription.email,
                    exc,
                )
        return recipients

    async def publish_newsletter(self, *, title: str, text: str, html: str) -> int:
        """Send an issue to every confirmed subscriber and return how many were sent."""
        recipients = await self.confirmed_recipients()
        for recipient in recipients:
            issue = Email(recipient=recipient, subject=title, html_body=html, text_body=text)
            try:
                await self.email_client.send(issue)
            except EmailDeliveryError as exc:
                logger.error("newsletter delivery to %s failed: %s", recipient, exc)
                raise SendEmailError("failed to send newsletter") from exc
        logger.info("newsletter %r sent to %d subscribers", title, len(recipients))
        return len(recipients)
