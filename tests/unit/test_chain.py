#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import threading

import pytest

from mskauth.creds import (
    CredentialSource,
    Credentials,
    NoCredentialsResolved,
    RefreshFailure,
    SourceClosed,
    SourceUnavailable,
)
from mskauth.creds.chain import CredentialChain


def source(mocker, name, creds=None, error=None):
    s = mocker.MagicMock(spec=CredentialSource)
    s.name = name
    s.__str__.return_value = name
    if creds is not None:
        s.get_credentials.return_value = creds
    else:
        s.get_credentials.side_effect = error or SourceUnavailable(name, "nothing here")
    return s


def test_first_available_source_wins(mocker):
    first = source(mocker, "first")
    second = source(mocker, "second", creds=Credentials("AKID2", "secret2"))
    third = source(mocker, "third", creds=Credentials("AKID3", "secret3"))

    chain = CredentialChain([first, second, third])
    assert chain.get_credentials() == Credentials("AKID2", "secret2")

    first.get_credentials.assert_called_once()
    second.get_credentials.assert_called_once()
    third.get_credentials.assert_not_called()


def test_no_credentials_resolved_names_every_source(mocker):
    sources = [source(mocker, n) for n in ("environment", "profile:dev", "container")]
    with pytest.raises(NoCredentialsResolved) as e:
        CredentialChain(sources).get_credentials()

    assert [name for name, _ in e.value.attempts] == [
        "environment",
        "profile:dev",
        "container",
    ]
    assert all(isinstance(err, SourceUnavailable) for _, err in e.value.attempts)
    for name in ("environment", "profile:dev", "container"):
        assert f"{name} => nothing here" in str(e.value)


def test_empty_chain():
    with pytest.raises(NoCredentialsResolved) as e:
        CredentialChain([]).get_credentials()
    assert e.value.attempts == []


def test_closed_source_is_not_skipped(mocker):
    closed = source(mocker, "assume-role", error=SourceClosed("assume-role"))
    later = source(mocker, "environment", creds=Credentials("AKID", "secret"))
    with pytest.raises(SourceClosed):
        CredentialChain([closed, later]).get_credentials()
    later.get_credentials.assert_not_called()


def test_sources_are_immutable(mocker):
    sources = [source(mocker, "a")]
    chain = CredentialChain(sources)
    sources.append(source(mocker, "b"))
    assert len(chain.sources) == 1
    assert isinstance(chain.sources, tuple)


def test_refresh_visits_every_source(mocker):
    sources = [source(mocker, n) for n in ("a", "b", "c")]
    CredentialChain(sources).refresh()
    for s in sources:
        s.refresh.assert_called_once()


def test_refresh_failure_does_not_stop_others(mocker):
    a = source(mocker, "a")
    b = source(mocker, "b")
    c = source(mocker, "c")
    a.refresh.side_effect = SourceUnavailable("a", "bad token file")
    c.refresh.side_effect = RuntimeError("boom")

    with pytest.raises(RefreshFailure) as e:
        CredentialChain([a, b, c]).refresh()

    b.refresh.assert_called_once()
    c.refresh.assert_called_once()
    assert [name for name, _ in e.value.failures] == ["a", "c"]
    assert "a => bad token file" in str(e.value)
    assert "c => boom" in str(e.value)


def test_nested_chain_refresh_failures_are_flattened(mocker):
    inner_a = source(mocker, "inner-a")
    inner_a.refresh.side_effect = SourceUnavailable("inner-a", "down")
    outer = source(mocker, "outer")
    outer.refresh.side_effect = SourceUnavailable("outer", "down")

    with pytest.raises(RefreshFailure) as e:
        CredentialChain([CredentialChain([inner_a]), outer]).refresh()
    assert [name for name, _ in e.value.failures] == ["inner-a", "outer"]


class _RotatingSource(CredentialSource):
    """Swaps in a whole new snapshot on every refresh."""

    name = "rotating"

    def __init__(self):
        self._generation = 0
        self._creds = self._make(0)
        self._lock = threading.Lock()

    @staticmethod
    def _make(n):
        return Credentials(f"AKID{n}", f"secret-{n}", f"token-{n}")

    def get_credentials(self):
        return self._creds

    def refresh(self):
        with self._lock:
            self._generation += 1
            self._creds = self._make(self._generation)


def test_concurrent_get_and_refresh_never_mix_snapshots():
    chain = CredentialChain([_RotatingSource()])
    stop = threading.Event()
    torn = []

    def reader():
        while not stop.is_set():
            creds = chain.get_credentials()
            n = creds.access_key_id[len("AKID"):]
            if creds.secret_access_key != f"secret-{n}" or creds.session_token != f"token-{n}":
                torn.append(creds)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    for _ in range(2000):
        chain.refresh()
    stop.set()
    for t in readers:
        t.join()

    assert not torn
