"""Resilient relay for a realtime traffic signal feed."""

from signal_relay.resilience import BackoffPolicy, ResourceKind, ResourceState
from signal_relay.resolver import AnswerSource, ResolvedAnswer, ResourceResolver

__all__ = [
    "AnswerSource",
    "BackoffPolicy",
    "ResolvedAnswer",
    "ResourceKind",
    "ResourceResolver",
    "ResourceState",
]
