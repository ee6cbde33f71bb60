#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Provides the ability to cache single values.

## Overview

The module provides the `AbstractExpiringValue` abstract base class, which is
responsible for the lazy loading of a value that is cached for a finite amount
of time. The base class provides the core functionality that depends on the
subclass's implementation of `is_expired`, `load`, and `save`.

Two concrete implementations are provided in this module. The first,
`ExpiringValue`, caches the value in memory for a fixed number of seconds. The
second, `ExpiringCredentials`, caches `mskauth.creds.Credentials` until shortly
before the expiration carried by the credentials themselves. The following
example demonstrates how to use `ExpiringValue`:

    >>> import time
    >>> ev = ExpiringValue(refresh_fn=time.ctime, max_age=10)
    >>> ev.value(); time.sleep(5); ev.value(); time.sleep(5); ev.value()
    'Sat Jul 13 15:04:30 2019'
    'Sat Jul 13 15:04:30 2019'
    'Sat Jul 13 15:04:40 2019'

The first two timestamps are the same because `value` was 5 seconds apart, which
is before the value would have expired, and thus the cached result is returned.
The third value, however, is ten seconds later because by the time the third
invocation of `value` took place, the original value expired after 10 seconds.

## Atomicity

A cached value is never mutated. A refresh obtains a complete new value from the
`refresh_fn` and then swaps it in under the lock, so readers observe either the
old value or the new one. If `refresh_fn` raises, the previously cached value is
left untouched.
"""

import logging
import threading
import time

LOG = logging.getLogger(__name__)


class AbstractExpiringValue:
    """Abstract base class to represent a value that expires.

    An `AbstractExpiringValue` represents a lazily loaded value that will expire
    over time. The constructor takes a `refresh_fn` function of zero arguments,
    which is called to obtain the value to be cached.

    At the time of instantiation, the value is not retrieved, it is only
    retrieved the first time the value method is invoked. Likewise, the value is
    not refreshed at the time it expires, but only the next time the value
    method is called. This class is thread-safe. Subclasses must provide
    implementations for `is_expired`, `load`, and `save`.
    """

    def __init__(self, refresh_fn):
        self._refresh_fn = refresh_fn
        self._lock = threading.Lock()

    def value(self, refresh=False):
        """Returns the value.

        The first time this method is called, the value will be obtained by
        calling the `refresh_fn` supplied in the constructor. Subsequent
        invocations of this method will return the cached value until it
        expires. If you set `refresh` parameter to `True`, the value will be
        refreshed and the expiration will be reset before being returned.
        """
        with self._lock:
            if not refresh and not self.is_expired():
                return self.load()

            value = self._refresh_fn()
            self.save(value)
            LOG.debug("refreshed data and saved in cache")
            return value

    def is_expired(self):
        """Returns `True` if the value needs to be refreshed, `False` otherwise.

        If this returns `True` during the invocation of
        `AbstractExpiringValue.value`, the `refresh_fn` will be called, followed
        by `save`, to renew the cached value. When this returns `False`, `load`
        is invoked instead to return the value from the cache.
        """
        raise NotImplementedError

    def load(self):
        """Returns the value from the cache."""
        raise NotImplementedError

    def save(self, value):
        """Saves the value to the cache."""
        raise NotImplementedError


class ExpiringValue(AbstractExpiringValue):
    """Represents a lazily loaded value that will expire over time.

    An `ExpiringValue` represents a lazily loaded value that is cached in memory
    for `max_age` seconds. A `max_age` of 0 disables caching. This class is
    thread-safe.
    """

    def __init__(self, refresh_fn, max_age):
        super().__init__(refresh_fn)
        self._max_age = max_age
        self._value = None
        self._expiry = 0

    def is_expired(self):
        return time.time() >= self._expiry

    def load(self):
        LOG.debug("Loading data from cache")
        return self._value

    def save(self, value):
        LOG.debug("Saving value to cache")
        self._value = value
        self._expiry = time.time() + self._max_age


class ExpiringCredentials(ExpiringValue):
    """Represents credentials cached until they are about to expire.

    The `refresh_fn` must return `mskauth.creds.Credentials`. The credentials
    are considered expired `margin` seconds before their own `expiration`.
    Credentials that carry no expiration are cached for `max_age` seconds.
    """

    def __init__(self, refresh_fn, margin, max_age=3600):
        super().__init__(refresh_fn, max_age)
        self._margin = margin

    def expires_within(self, seconds):
        """Returns `True` if cached credentials expire within `seconds`.

        `False` is returned if nothing has been cached yet.
        """
        with self._lock:
            if self._value is None:
                return False
            expiration = self._value.expiration
            deadline = self._expiry if expiration is None else expiration.timestamp()
            return time.time() + seconds >= deadline

    def save(self, value):
        super().save(value)
        if value.expiration is not None:
            self._expiry = value.expiration.timestamp() - self._margin
