"""Messaging transports."""

from .base import Transport

__all__ = ["Transport"]
