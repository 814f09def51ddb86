"""Registry of providers keyed by channel."""

from notifyhub.core.logging import get_logger
from notifyhub.models.notification import NotificationChannel
from notifyhub.provider.base import NotificationProvider

logger = get_logger(__name__)


class ChannelProviderRegistry:
    """Lookup table from channel to its bound provider."""

    def __init__(self):
        self._providers: dict[NotificationChannel, NotificationProvider] = {}

    def register(self, channel: NotificationChannel, provider: NotificationProvider) -> None:
        """Bind a provider to a channel, replacing any previous binding.

        Raises:
            ValueError: If channel or provider is missing
        """
        if channel is None:
            raise ValueError("Channel cannot be null")
        if provider is None:
            raise ValueError("Provider cannot be null")

        self._providers[channel] = provider
        logger.info(
            "Registered provider",
            provider=provider.provider_name,
            channel=channel.value,
        )

    def get(self, channel: NotificationChannel) -> NotificationProvider | None:
        return self._providers.get(channel)

    def has_provider(self, channel: NotificationChannel) -> bool:
        return channel in self._providers

    def unregister(self, channel: NotificationChannel) -> None:
        removed = self._providers.pop(channel, None)
        if removed is not None:
            logger.info(
                "Unregistered provider",
                provider=removed.provider_name,
                channel=channel.value,
            )

    def clear(self) -> None:
        logger.info("Clearing all registered providers")
        self._providers.clear()

    @property
    def channels(self) -> set[NotificationChannel]:
        return set(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, channel: object) -> bool:
        return channel in self._providers
