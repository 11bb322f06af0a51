#!/usr/bin/env python3
# -*- coding: utf-8 -*-


class AuthNError(Exception):
    """Base class for every error raised by the authentication layer."""


class InvalidParameterError(AuthNError):
    """Raised when the SRP6a group parameters (N, g) are unusable."""


class ValidationError(AuthNError):
    """
    Raised for degenerate protocol input: an ephemeral value that is
    0 mod N, a value that is not hex, or a session row missing its key.
    """


class ExpiredChallengeError(AuthNError):
    """Raised by the in-process fallback when its challenge already expired."""


class StoreError(AuthNError):
    """Raised when the persistence layer refuses an insert or update."""
