"""Persistent package hash cache."""

from .store import HashCache, HashMapping, reconcile

__all__ = ["HashCache", "HashMapping", "reconcile"]
