#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Obtain AWS credentials from one of several sources.

## Overview

This module provides the `CredentialSource` interface. Regardless of the
mechanism, a credential source is responsible for returning `Credentials` that
can be used to sign the IAM authentication payload sent to a broker, or for
raising `SourceUnavailable` when it cannot currently supply any so that the next
source can be tried.

`mskauth.creds.aws`
:  Sources backed by environment variables, system properties, named profiles,
web identity tokens, and container or instance metadata.

`mskauth.creds.sts`
:  A source that assumes an IAM role and keeps its session fresh in the
background. This is the only source that must be closed.

`mskauth.creds.chain`
:  An ordered list of sources tried one after the other.

## Exceptions

`CredentialsError`
:  Base class of every exception raised by this package.

`SourceUnavailable`
:  A single source cannot currently supply credentials. Chains fall back to the
next source.

`SourceClosed`
:  A source has been closed and can no longer be used.

`NoCredentialsResolved`
:  Every source in a chain was tried and none supplied credentials.

`RefreshFailure`
:  One or more sources failed to refresh.

`ConfigurationError`
:  An option holds a malformed value.

## Thread Safety

`Credentials` are immutable. All of the `CredentialSource` implementations are
thread-safe, and a cached value is swapped as a whole when it is refreshed, so a
reader never sees the secret key of one session paired with the token of
another.
"""

from collections import namedtuple

_Credentials = namedtuple(
    "Credentials",
    ["access_key_id", "secret_access_key", "session_token", "expiration"],
    defaults=(None, None),
)


class Credentials(_Credentials):
    """An immutable snapshot of AWS credentials.

    `session_token` is only present for temporary credentials. `expiration` is a
    timezone-aware `datetime` or `None` if the credentials do not expire.
    """

    __slots__ = ()

    def __repr__(self):
        return (
            f"Credentials(access_key_id={self.access_key_id!r}, "
            f"secret_access_key='****', "
            f"session_token={'****' if self.session_token else None}, "
            f"expiration={self.expiration!r})"
        )


class CredentialSource:
    """A credential source is used to obtain AWS credentials.

    This is an abstract base class and cannot be instantiated directly. The
    `name` class attribute identifies the kind of source in log messages and
    error reports.
    """

    name = None

    def get_credentials(self):
        """Returns the current `Credentials` from this source.

        A `SourceUnavailable` is raised if the source is not configured or cannot
        currently supply credentials.
        """
        raise NotImplementedError

    def refresh(self):
        """Discards any cached state and reloads it if the source is configured.

        Refreshing a source that is not configured does nothing. A
        `SourceUnavailable` is raised if a configured source fails to reload.
        """
        raise NotImplementedError

    def __str__(self):
        return self.name or type(self).__name__


class CredentialsError(Exception):
    """Base class for exceptions raised while resolving credentials."""


class SourceUnavailable(CredentialsError):
    """Raised if a source cannot currently supply credentials.

    The `source` attribute is the name of the source and `reason` is a short
    description of why it is unavailable.
    """

    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class SourceClosed(CredentialsError):
    """Raised if a source is used after it has been closed."""

    def __init__(self, source):
        self.source = source
        super().__init__(f"{source}: source has been closed")


class NoCredentialsResolved(CredentialsError):
    """Raised if no source in a chain could supply credentials.

    The `attempts` attribute is a list of (source name, exception) tuples for
    every source that was tried, in the order they were tried.
    """

    def __init__(self, attempts):
        self.attempts = attempts

        msg = "Unable to load AWS credentials from any source in the chain:\n"
        for source, error in attempts:
            msg += f"  {source} => {getattr(error, 'reason', error)}\n"
        super().__init__(msg)


class RefreshFailure(CredentialsError):
    """Raised if one or more sources failed to refresh.

    The `failures` attribute is a list of (source name, exception) tuples. The
    sources not listed were refreshed successfully.
    """

    def __init__(self, failures):
        self.failures = failures

        msg = "Failed to refresh credential sources:\n"
        for source, error in failures:
            msg += f"  {source} => {getattr(error, 'reason', error)}\n"
        super().__init__(msg)


class ConfigurationError(CredentialsError, ValueError):
    """Raised if an option holds a malformed value."""
