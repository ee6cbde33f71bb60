#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Obtain AWS credentials by assuming an IAM role.

## Overview

`AssumedRoleSource` calls STS AssumeRole to obtain temporary credentials for a
role, typically one in another account that has been granted access to an MSK
cluster:

    base = CredentialChain([EnvironmentSource(), ProfileSource("default")])
    source = AssumedRoleSource(
        "arn:aws:iam::111222333444:role/KafkaClient", "aws-msk-iam-auth", base
    )
    try:
        creds = source.get_credentials()
    finally:
        source.close()

The credentials used to call STS, the bootstrap credentials, are obtained from
the `base` source every time a new session is requested. When this source is
assembled by `mskauth.resolver.CredentialResolver`, `base` is the default
fallback sequence and never the named profile.

## Refreshing

Sessions last 15 minutes by default. A session is replaced synchronously if it
is requested within 1 minute of its expiration. In addition, a background thread
started by the constructor wakes up every minute and replaces a session that
expires within the next 5 minutes, so signers rarely wait on STS. The thread
never requests the first session; nothing is fetched until credentials are
asked for. A failed background refresh is logged and the current session is
kept until it is requested again.

The background thread must be stopped with `AssumedRoleSource.close`. Once
closed, `get_credentials` and `refresh` raise `mskauth.creds.SourceClosed`.
"""

import logging
import threading

import boto3
import botocore.exceptions

from mskauth.cache import ExpiringCredentials
from mskauth.creds import CredentialSource, CredentialsError, SourceClosed, SourceUnavailable
from mskauth.creds.aws import credentials_from_sts

LOG = logging.getLogger(__name__)

DEFAULT_SESSION_NAME = "aws-msk-iam-auth"
"""Session name used when assuming a role if none is configured."""


def _sts_client(creds):
    """Returns a boto3 STS client that signs requests with `creds`."""
    session = boto3.Session(
        aws_access_key_id=creds.access_key_id,
        aws_secret_access_key=creds.secret_access_key,
        aws_session_token=creds.session_token,
    )
    return session.client("sts")


class AssumedRoleSource(CredentialSource):
    """A credential source that assumes the IAM role `role_arn`.

    The `session_name` is passed to STS as the RoleSessionName and shows up in
    CloudTrail. The `base` is a `mskauth.creds.CredentialSource` supplying the
    credentials used to call STS. The `client_factory` is called with those
    credentials and must return a boto3 STS client.

    Sessions are requested for `duration` seconds. They are replaced when
    requested within `margin` seconds of their expiration, and by the background
    thread when within `async_threshold` seconds of their expiration. The thread
    checks every `poll_interval` seconds.
    """

    name = "assume-role"

    def __init__(
        self,
        role_arn,
        session_name,
        base,
        client_factory=None,
        duration=900,
        margin=60,
        async_threshold=300,
        poll_interval=60,
    ):
        self.role_arn = role_arn
        self.session_name = session_name
        self._base = base
        self._client_factory = client_factory or _sts_client
        self._duration = duration
        self._async_threshold = async_threshold
        self._poll_interval = poll_interval
        self._cached = ExpiringCredentials(self._assume_role, margin)

        self._closed = False
        self._close_lock = threading.Lock()
        self._stopped = threading.Event()
        self._refresher = threading.Thread(
            target=self._refresh_loop, name="mskauth-sts-refresh", daemon=True
        )
        self._refresher.start()

    def _assume_role(self):
        try:
            base_creds = self._base.get_credentials()
        except CredentialsError as e:
            raise SourceUnavailable(
                self.name, f"no credentials to assume {self.role_arn} with"
            ) from e

        LOG.info("Assuming role %s as %s", self.role_arn, self.session_name)
        try:
            resp = self._client_factory(base_creds).assume_role(
                RoleArn=self.role_arn,
                RoleSessionName=self.session_name,
                DurationSeconds=self._duration,
            )
        except (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError) as e:
            raise SourceUnavailable(
                self.name, f"cannot assume role {self.role_arn}: {e}"
            ) from e

        return credentials_from_sts(resp)

    def _refresh_loop(self):
        while not self._stopped.wait(self._poll_interval):
            self._refresh_if_expiring()

    def _refresh_if_expiring(self):
        """Replaces the current session if it expires soon.

        Does nothing if no session has been requested yet.
        """
        if not self._cached.expires_within(self._async_threshold):
            return
        try:
            self._cached.value(refresh=True)
            LOG.info("refreshed session for %s in background", self.role_arn)
        except CredentialsError as e:
            LOG.warning("background refresh of %s failed: %s", self.role_arn, e)

    @property
    def closed(self):
        return self._closed

    def get_credentials(self):
        if self._closed:
            raise SourceClosed(self.name)
        return self._cached.value()

    def refresh(self):
        if self._closed:
            raise SourceClosed(self.name)
        self._cached.value(refresh=True)

    def close(self):
        """Stops the background refresh thread.

        Calling this more than once has no further effect.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        LOG.debug("stopping background refresh of %s", self.role_arn)
        self._stopped.set()
        if self._refresher is not threading.current_thread():
            # An in-flight STS call is bounded by botocore's own timeouts.
            self._refresher.join(timeout=self._poll_interval)
