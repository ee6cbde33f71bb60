#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Resolve the AWS credentials used for IAM authentication to MSK.

## Overview

`CredentialResolver` is built from the options a client supplies when it
configures IAM authentication, usually on its authentication config line:

    sasl.jaas.config = software.amazon.msk.auth.iam.IAMLoginModule required awsProfileName="dev";

The currently supported options are:

`awsProfileName`
:  Use the credentials of this profile from the AWS configuration and
credential files ahead of anything else.

`awsRoleArn`
:  Assume this IAM role and use the resulting session credentials.

`awsRoleSessionName`
:  The session name used when assuming `awsRoleArn`. Defaults to
"aws-msk-iam-auth". Ignored without `awsRoleArn`.

Unknown options are ignored. If no options are provided, the default fallback
sequence is used on its own. The resolver tries, in order:

1. the `awsProfileName` profile, if set
2. the `awsRoleArn` role, if set
3. environment variables
4. system properties
5. a web identity token
6. the ambient profile (`AWS_PROFILE` or "default")
7. container or instance metadata

The bootstrap credentials used to assume `awsRoleArn` come from the default
fallback sequence (3 to 7), never from the named profile. The precedence above
only decides which credentials are handed out for signing.

## Usage

    with CredentialResolver({"awsRoleArn": "arn:aws:iam::111222333444:role/Kafka"}) as r:
        creds = r.get_credentials()

    r = CredentialResolver.from_jaas_config(
        'software.amazon.msk.auth.iam.IAMLoginModule required awsProfileName="dev";'
    )

Construction performs no network or file I/O and does not fail merely because
no credentials are available yet; that is reported by `get_credentials`. A
`mskauth.creds.ConfigurationError` is raised at construction if an option holds a
malformed value, such as a non-string or blank profile name.

## Thread Safety

A single resolver may be shared by all the connections of a client.
`get_credentials` and `refresh` may be called concurrently from any number of
threads. `close` should be called once, during shutdown.
"""

import logging
import os

from mskauth.config import Config, EmptyConfig, NonBlankStr, Str, parse_jaas_options
from mskauth.creds import ConfigurationError, RefreshFailure
from mskauth.creds.aws import (
    ContainerMetadataSource,
    EnvironmentSource,
    ProfileSource,
    SystemPropertySource,
    WebIdentitySource,
    ambient_profile_name,
)
from mskauth.creds.chain import CredentialChain
from mskauth.creds.sts import DEFAULT_SESSION_NAME, AssumedRoleSource

LOG = logging.getLogger(__name__)

AWS_PROFILE_NAME_KEY = "awsProfileName"
AWS_ROLE_ARN_KEY = "awsRoleArn"
AWS_ROLE_SESSION_KEY = "awsRoleSessionName"


def default_sources(
    environ,
    properties,
    session_factory=None,
    container_fetcher=None,
    instance_fetcher=None,
):
    """Returns a new list of the sources in the default fallback sequence."""
    return [
        EnvironmentSource(environ),
        SystemPropertySource(properties),
        WebIdentitySource(environ),
        ProfileSource(ambient_profile_name(environ, properties), session_factory),
        ContainerMetadataSource(environ, container_fetcher, instance_fetcher),
    ]


class CredentialResolver:
    """Supplies AWS credentials according to the authentication `options`.

    `options` is a dict of option names to values. Please refer to the module
    documentation for the supported options and the order in which sources are
    tried.

    The remaining arguments replace process-wide state. `environ` defaults to
    `os.environ` and `properties`, the system properties, to an empty dict.
    `session_factory` builds the boto3 sessions used to read profiles,
    `sts_client_factory` builds the STS client used to assume `awsRoleArn` from
    bootstrap credentials, and `container_fetcher` and `instance_fetcher` are the
    botocore metadata fetchers used by
    `mskauth.creds.aws.ContainerMetadataSource`.
    """

    def __init__(
        self,
        options=None,
        environ=None,
        properties=None,
        session_factory=None,
        sts_client_factory=None,
        container_fetcher=None,
        instance_fetcher=None,
    ):
        cfg = EmptyConfig if options is None else Config(options)
        LOG.debug("Number of options to configure credential provider %d", len(cfg))

        environ = os.environ if environ is None else environ
        properties = {} if properties is None else properties

        # Read every option before building sources, so a malformed option
        # never leaves a background refresh thread behind.
        profile_name, role_arn, session_name = _read_options(cfg)

        defaults = default_sources(
            environ, properties, session_factory, container_fetcher, instance_fetcher
        )

        self.profile_source = None
        if profile_name is not None:
            LOG.debug("Profile name %s", profile_name)
            self.profile_source = ProfileSource(profile_name, session_factory)

        self.role_source = None
        if role_arn is not None:
            LOG.debug("Role ARN %s", role_arn)
            self.role_source = AssumedRoleSource(
                role_arn,
                session_name,
                CredentialChain(defaults),
                client_factory=sts_client_factory,
            )

        optional = [s for s in (self.profile_source, self.role_source) if s]
        self._chain = CredentialChain(optional + defaults)

    @classmethod
    def from_jaas_config(cls, line, **kwargs):
        """Returns a resolver for the options on an authentication config line.

        The remaining `kwargs` are passed to the constructor.
        """
        try:
            options = parse_jaas_options(line)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return cls(options, **kwargs)

    @property
    def sources(self):
        """The sources tried by `get_credentials`, in order."""
        return self._chain.sources

    def get_credentials(self):
        """Returns `mskauth.creds.Credentials` from the first source that has them.

        A `mskauth.creds.NoCredentialsResolved` is raised if no source can
        supply credentials. Its `attempts` attribute lists every source tried.
        """
        return self._chain.get_credentials()

    def refresh(self):
        """Refreshes every source.

        Every source is refreshed even if some fail. Each failure is logged and
        a `mskauth.creds.RefreshFailure` describing all of them is then raised.
        Credentials already cached by the other sources remain valid.
        """
        try:
            self._chain.refresh()
        except RefreshFailure as e:
            for source, error in e.failures:
                LOG.warning("failed to refresh %s: %s", source, error)
            raise

    def close(self):
        """Stops the background refresh of the assumed role, if any.

        This is safe to call more than once and never raises.
        """
        if self.role_source is not None:
            self.role_source.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def _read_options(cfg):
    try:
        profile_name = cfg.get(AWS_PROFILE_NAME_KEY, type=NonBlankStr)
        role_arn = cfg.get(AWS_ROLE_ARN_KEY, type=NonBlankStr)
        session_name = cfg.get(
            AWS_ROLE_SESSION_KEY, type=Str, default=DEFAULT_SESSION_NAME
        )
    except TypeError as e:
        raise ConfigurationError(str(e)) from e

    if not session_name.strip():
        session_name = DEFAULT_SESSION_NAME

    return profile_name, role_arn, session_name
