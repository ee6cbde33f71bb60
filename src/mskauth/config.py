#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Provides type-checked access to authentication options.

## Overview

`Config` is a convenient representation of the options a client passes when it
configures IAM authentication. It provides for default values, mandatory
values, as well as the ability to type-check values using type specifications.
Options usually arrive on a pluggable authentication configuration line, which
`parse_jaas_options` turns into the plain dict that `Config` wraps:

    opts = parse_jaas_options(
        'software.amazon.msk.auth.iam.IAMLoginModule required awsProfileName="dev";'
    )
    assert opts == {"awsProfileName": "dev"}

## Type Checking

Type checking of values is done via a set of type objects and classes defined in
this module. `Str` and `Blank` are pre-defined, `Scalar` and `StrMatch` build
others, and `Not` and `And` combine them. `NonBlankStr`, the type required of
profile names and role ARNs, is defined as:

    And(Str, Not(Blank))

## Reading Values

`Config.get` is used to read values:

    c = Config({"awsProfileName": "dev", "awsRoleArn": None})

    assert c.get("awsProfileName", type=Str) == "dev"
    assert c.get("awsRoleArn", type=Str) is None
    assert c.get("awsRoleSessionName", type=Str, default="x") == "x"

A key holding `None` is treated the same as a key that is not present. If a value
does not match the expected type, a `TypeError` is raised.
"""

import logging
import re
import shlex

LOG = logging.getLogger(__name__)

# pylint: disable=unidiomatic-typecheck
#
# Types are matched exactly rather than with isinstance, so a str subclass or a
# bool standing in for another scalar never passes.

_CONTROL_FLAGS = ("required", "requisite", "sufficient", "optional")


class Config:
    """A `Config` can read type-checked values from a Python dictionary.

    Options are read with defaults and optional type checks. Keys are
    case-sensitive and keys that are never asked for are ignored.
    """

    def __init__(self, d):
        self.conf = {} if d is None else d

    def __len__(self):
        return len(self.conf)

    def get(self, key, default=None, type=None):
        """Return the value of option `key`, or `default` if it is not set.

        An option holding `None` counts as not set. If `type` is given, the
        value, or the `default` when the option is not set, must match it or a
        `TypeError` naming the option is raised:

            c.get("awsProfileName", type=NonBlankStr)
            c.get("awsRoleSessionName", type=Str, default="aws-msk-iam-auth")
        """
        # pylint: disable=redefined-builtin
        value = self.conf.get(key)
        if value is None:
            value = default

        if value is None or not type or type.type_check(value):
            return value

        raise TypeError(f"Error in config: {key}: not a {type}: {repr(value)}")


EmptyConfig = Config({})
"""Singleton representing an empty `Config`."""


def parse_jaas_options(line):
    """Return a dict of the options specified on an authentication config line.

    The `line` has the form `LOGIN_MODULE FLAG [KEY=VALUE ...];` where FLAG is
    one of `required`, `requisite`, `sufficient`, or `optional`. Values may be
    quoted with single or double quotes and the trailing semicolon may be
    omitted. A `ValueError` is raised if the line cannot be parsed.
    """
    line = line.strip()
    if line.endswith(";"):
        line = line[:-1]

    try:
        tokens = shlex.split(line)
    except ValueError as e:
        raise ValueError(f"Invalid authentication config line: {e}") from e

    if len(tokens) < 2:
        raise ValueError("Authentication config line must name a login module and flag")

    module, flag, *pairs = tokens
    if flag not in _CONTROL_FLAGS:
        raise ValueError(f"Invalid control flag for {module}: '{flag}'")

    options = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid option for {module}: '{pair}'")
        options[key] = value

    LOG.debug("parsed %d options for login module %s", len(options), module)
    return options


class Type:
    """Base class of the types an option value can be checked against."""

    def type_check(self, obj):
        """Returns true if `obj` matches this `Type`."""
        raise NotImplementedError

    def __str__(self):
        """Returns the description used in `TypeError` messages."""
        raise NotImplementedError


class Not(Type):
    """Matches any value that `config_type` does not."""

    def __init__(self, config_type):
        self.config_type = config_type

    def type_check(self, obj):
        return not self.config_type.type_check(obj)

    def __str__(self):
        return f"not {self.config_type}"


class And(Type):
    """Matches a value only if every one of `config_types` does."""

    def __init__(self, *config_types):
        self.config_types = config_types

    def type_check(self, obj):
        return all(t.type_check(obj) for t in self.config_types)

    def __str__(self):
        return "(" + " and ".join(str(t) for t in self.config_types) + ")"


class Scalar(Type):
    """Matches values whose type is exactly the builtin `type_`."""

    def __init__(self, type_):
        self.type = type_

    def type_check(self, obj):
        return type(obj) == self.type  # noqa: E721

    def __str__(self):
        return self.type.__name__


class StrMatch(Type):
    """Matches strings in which `pattern` is found by `re.search`."""

    def __init__(self, pattern):
        self.pattern = pattern

    def type_check(self, obj):
        return type(obj) == str and bool(re.search(self.pattern, obj))  # noqa: E721

    def __str__(self):
        return f"str matching '{self.pattern}'"


Str = Scalar(str)
"""Singleton representing a str."""

Blank = StrMatch(r"^\s*$")
"""Singleton representing an empty or whitespace-only str."""

NonBlankStr = And(Str, Not(Blank))
"""Singleton representing a str with at least one non-whitespace character."""
