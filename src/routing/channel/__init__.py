"""Channel adapter registry.

One adapter instance per channel for the life of the process. The fake
adapters are used unless a real adapter is installed with
``register_channel`` (e.g. at application start-up).
"""

from routing.shared.enums import Channel

_channel_instances: dict[str, object] = {}
_channel_factories: dict[str, object] = {}


def _default_factory(channel_type: str):
    from routing.channel.fakes import (
        FakeEmailAdapter,
        FakeInAppAdapter,
        FakeSlackAdapter,
        FakeSMSAdapter,
    )

    return {
        Channel.EMAIL.value: FakeEmailAdapter,
        Channel.SMS.value: FakeSMSAdapter,
        Channel.SLACK.value: FakeSlackAdapter,
        Channel.IN_APP.value: FakeInAppAdapter,
    }.get(channel_type)


def register_channel(channel_type: str, factory) -> None:
    """Install a factory for a channel; replaces any cached adapter."""
    _channel_factories[channel_type] = factory
    _channel_instances.pop(channel_type, None)


def get_channel(channel_type: str):
    """Return the adapter for ``channel_type`` (a Channel value)."""
    if channel_type not in _channel_instances:
        factory = _channel_factories.get(channel_type) or _default_factory(channel_type)
        if factory is None:
            raise ValueError(f"Unknown channel type: {channel_type}")
        _channel_instances[channel_type] = factory()

    return _channel_instances[channel_type]


def reset_channels():
    """Drop cached adapters and registered factories (useful for testing)."""
    _channel_instances.clear()
    _channel_factories.clear()
