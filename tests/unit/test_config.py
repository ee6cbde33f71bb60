#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import pytest

from mskauth import config


@pytest.fixture()
def options():
    return {
        "awsProfileName": "dev",
        "awsRoleArn": None,
        "awsRoleSessionName": "   ",
        "awsDebugCreds": True,
        "retries": 3,
    }


@pytest.mark.parametrize(
    "key, default, type_, expected",
    [
        ("awsProfileName", None, None, "dev"),
        ("awsProfileName", "other", config.Str, "dev"),
        ("awsRoleArn", None, config.Str, None),
        ("awsRoleArn", "arn:aws:iam::123:role/r", config.Str, "arn:aws:iam::123:role/r"),
        ("does not exist", None, None, None),
        ("does not exist", "fallback", config.Str, "fallback"),
        ("awsRoleArn", "fallback", config.NonBlankStr, "fallback"),
        ("awsDebugCreds", None, None, True),
        ("awsRoleSessionName", None, config.Blank, "   "),
    ],
)
def test_get_with_valid_types(options, key, default, type_, expected):
    c = config.Config(options)
    assert c.get(key, default=default, type=type_) == expected


def test_default_is_type_checked(options):
    c = config.Config(options)
    with pytest.raises(TypeError, match="awsRoleArn"):
        c.get("awsRoleArn", default=10, type=config.Str)


@pytest.mark.parametrize(
    "key, type_",
    [
        ("awsProfileName", config.Blank),
        ("awsDebugCreds", config.Str),
        ("retries", config.Str),
        ("awsRoleSessionName", config.NonBlankStr),
    ],
)
def test_get_with_invalid_types(options, key, type_):
    c = config.Config(options)
    with pytest.raises(TypeError, match=key):
        c.get(key, type=type_)


def test_config_length(options):
    assert len(config.Config(options)) == 5
    assert len(config.Config(None)) == 0
    assert len(config.EmptyConfig) == 0


@pytest.mark.parametrize(
    "line, expected",
    [
        ("software.amazon.msk.auth.iam.IAMLoginModule required;", {}),
        ("software.amazon.msk.auth.iam.IAMLoginModule required", {}),
        (
            'software.amazon.msk.auth.iam.IAMLoginModule required awsProfileName="dev";',
            {"awsProfileName": "dev"},
        ),
        (
            "IAMLoginModule required awsProfileName='dev' awsRoleArn=arn:aws:iam::123:role/r;",
            {"awsProfileName": "dev", "awsRoleArn": "arn:aws:iam::123:role/r"},
        ),
        (
            '  IAMLoginModule optional awsRoleSessionName="my session" ;  ',
            {"awsRoleSessionName": "my session"},
        ),
        ("IAMLoginModule sufficient empty=;", {"empty": ""}),
        ("IAMLoginModule requisite a=b=c;", {"a": "b=c"}),
    ],
)
def test_parse_jaas_options(line, expected):
    assert config.parse_jaas_options(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "",
        ";",
        "IAMLoginModule",
        "IAMLoginModule mandatory awsProfileName=dev;",
        "IAMLoginModule required awsProfileName;",
        "IAMLoginModule required =dev;",
        'IAMLoginModule required awsProfileName="dev;',
    ],
)
def test_parse_jaas_options_invalid(line):
    with pytest.raises(ValueError):
        config.parse_jaas_options(line)


@pytest.mark.parametrize(
    "test_input, expected",
    [
        ("test", True),
        (10, False),
        (1.0, False),
        (True, False),
        ([], False),
        ({}, False),
    ],
)
def test_str_type(test_input, expected):
    assert config.Str.type_check(test_input) == expected
    assert str(config.Str) == "str"


@pytest.mark.parametrize(
    "test_input, expected",
    [
        ("", True),
        ("   ", True),
        ("\t\n", True),
        (" x ", False),
        ("dev", False),
        (10, False),
        (None, False),
    ],
)
def test_blank_type(test_input, expected):
    assert config.Blank.type_check(test_input) == expected


@pytest.mark.parametrize(
    "test_input, expected",
    [
        ("dev", True),
        (" dev ", True),
        ("", False),
        ("  ", False),
        (10, False),
        (True, False),
    ],
)
def test_non_blank_str_type(test_input, expected):
    assert config.NonBlankStr.type_check(test_input) == expected
    assert str(config.NonBlankStr) == "(str and not str matching '^\\s*$')"


@pytest.mark.parametrize(
    "test_input, expected",
    [
        ("arn:aws:iam::123:role/r", True),
        ("role/r", False),
        (10, False),
        ([], False),
    ],
)
def test_str_match_type(test_input, expected):
    assert config.StrMatch(r"^arn:").type_check(test_input) == expected
    assert str(config.StrMatch(r"^arn:")) == "str matching '^arn:'"


@pytest.mark.parametrize(
    "test_input, expected",
    [("test", False), (10, True), (1.0, True), (True, True), ([], True), ({}, True)],
)
def test_not_type(test_input, expected):
    assert config.Not(config.Str).type_check(test_input) == expected
    assert str(config.Not(config.Str)) == "not str"


@pytest.mark.parametrize(
    "test_input, expected",
    [
        ("test", False),
        ("p@ssword", False),
        ("p@ssw0rd", True),
        (10, False),
        ([], False),
    ],
)
def test_and_type(test_input, expected):
    assert (
        config.And(config.StrMatch(r"\d"), config.StrMatch(r"[!@#$%^&*]")).type_check(
            test_input
        )
        == expected
    )
    assert (
        str(config.And(config.StrMatch(r"\d"), config.StrMatch(r"[!@#$%^&*]")))
        == "(str matching '\\d' and str matching '[!@#$%^&*]')"
    )
