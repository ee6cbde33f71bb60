#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Compose credential sources into an ordered fallback sequence."""

import logging

from mskauth.creds import CredentialSource, NoCredentialsResolved, RefreshFailure, SourceUnavailable

LOG = logging.getLogger(__name__)


class CredentialChain(CredentialSource):
    """A credential source that tries each of `sources` in order.

    The credentials of the first source that does not raise
    `mskauth.creds.SourceUnavailable` are returned and later sources are not
    consulted. The list of sources is fixed at construction.
    """

    name = "chain"

    def __init__(self, sources):
        self.sources = tuple(sources)

    def get_credentials(self):
        """Returns credentials from the first source able to supply them.

        A `mskauth.creds.NoCredentialsResolved` listing every source tried is
        raised if none can. Any other exception raised by a source propagates.
        """
        attempts = []
        for source in self.sources:
            try:
                creds = source.get_credentials()
            except SourceUnavailable as e:
                LOG.debug("unable to load credentials from %s: %s", source, e.reason)
                attempts.append((str(source), e))
                continue

            LOG.debug("loaded credentials from %s", source)
            return creds

        raise NoCredentialsResolved(attempts)

    def refresh(self):
        """Refreshes every source in the chain.

        A failure to refresh one source does not stop the others from being
        refreshed. Once all have been visited, a `mskauth.creds.RefreshFailure`
        is raised if any of them failed.
        """
        failures = []
        for source in self.sources:
            try:
                source.refresh()
            except RefreshFailure as e:
                failures.extend(e.failures)
            except Exception as e:  # pylint: disable=broad-except
                failures.append((str(source), e))

        if failures:
            raise RefreshFailure(failures)
