"""
Push Module - Black Box Interface

Purpose: Topic subscriptions and unsolicited message delivery
Interface: subscribe(), unsubscribe(), push(), push_if_subscribed(), publish()
Hidden: Batch fan-out, envelope serialization

Delivery goes through each session's connection; transport details stay outside.
"""

from .bus import SubscriptionBus

__all__ = ["SubscriptionBus"]
