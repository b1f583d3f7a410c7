"""Newsletter subscription storage, email delivery and confirmation flows."""

from .email_client import Email, EmailClient, EmailDeliveryError, RecordingEmailClient
from .service import (
    AlreadySubscribedError,
    InvalidSubscriberError,
    SendEmailError,
    SubscribeError,
    SubscriptionNotFound,
    SubscriptionService,
    TokenSigningError,
    TokenVerificationError,
)
from .storage import (
    ConfirmedSubscription,
    InMemoryStorage,
    NewSubscription,
    PostgresStorage,
    Subscription,
    SubscriptionStorage,
    create_storage_from_env,
)

__all__ = [
    "Email",
    "EmailClient",
    "EmailDeliveryError",
    "RecordingEmailClient",
    "SubscriptionService",
    "SubscribeError",
    "InvalidSubscriberError",
    "AlreadySubscribedError",
    "SubscriptionNotFound",
    "TokenSigningError",
    "SendEmailError",
    "TokenVerificationError",
    "ConfirmedSubscription",
    "NewSubscription",
    "Subscription",
    "SubscriptionStorage",
    "InMemoryStorage",
    "PostgresStorage",
    "create_storage_from_env",
]
