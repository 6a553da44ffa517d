from datetime import timedelta

import pytest

from valiconf.values import (
    ConfigError,
    is_valid_label_name,
    parse_bool,
    parse_duration,
    parse_int,
    parse_matchers,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("30s", timedelta(seconds=30)),
        ("20s", timedelta(seconds=20)),
        ("120s", timedelta(seconds=120)),
        ("0", timedelta(0)),
    ],
)
def test_parse_duration_values(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize(
    "left, right",
    [
        ("1m30s", "90s"),
        ("1.5h", "90m"),
        ("2h", "120m"),
        ("1s", "1000ms"),
        ("1ms", "1000us"),
        ("1us", "1\u00b5s"),
        ("1us", "1000ns"),
        ("+5s", "5s"),
        (".5s", "500ms"),
    ],
)
def test_parse_duration_equivalent_forms(left, right):
    assert parse_duration(left) == parse_duration(right)


def test_parse_duration_negative_is_opposite():
    assert parse_duration("-1m30s") == -parse_duration("1m30s")


@pytest.mark.parametrize("text", ["a", "", "1", "1x", "s", ".", "-", "1.s2"])
def test_parse_duration_rejects_bad_input(text):
    with pytest.raises(ConfigError):
        parse_duration(text)


def test_parse_duration_overflow():
    with pytest.raises(ConfigError):
        parse_duration("9999999999999h")


@pytest.mark.parametrize("text", ["1", "t", "T", "TRUE", "true", "True"])
def test_parse_bool_true(text):
    assert parse_bool(text) is True


@pytest.mark.parametrize("text", ["0", "f", "F", "FALSE", "false", "False"])
def test_parse_bool_false(text):
    assert parse_bool(text) is False


@pytest.mark.parametrize("text", ["a", "3", "yes", "", " true", "tRUE"])
def test_parse_bool_rejects(text):
    with pytest.raises(ConfigError):
        parse_bool(text)


@pytest.mark.parametrize("text, expected", [("100", 100), ("600", 600), ("+3", 3), ("-3", -3)])
def test_parse_int_values(text, expected):
    assert parse_int(text) == expected


@pytest.mark.parametrize("text", ["a", "", " 1", "1_0", "1.0", "0x10", "--1"])
def test_parse_int_rejects(text):
    with pytest.raises(ConfigError):
        parse_int(text)


def test_parse_int_out_of_range():
    with pytest.raises(ConfigError):
        parse_int(str(2**63))
    assert parse_int(str(2**63 - 1)) == 2**63 - 1


def test_parse_matchers_single():
    assert parse_matchers('{job="fluent-bit"}') == [("job", "=", "fluent-bit")]


def test_parse_matchers_other_label():
    assert parse_matchers('{app="foo"}') == [("app", "=", "foo")]


def test_parse_matchers_multiple_with_spaces_and_operators():
    result = parse_matchers('  { app = "foo" , env!="dev", tier=~"a.+", x!~`b` } ')
    assert result == [
        ("app", "=", "foo"),
        ("env", "!=", "dev"),
        ("tier", "=~", "a.+"),
        ("x", "!~", "b"),
    ]


def test_parse_matchers_escapes():
    assert parse_matchers(r'{app="a\"b\\c"}') == [("app", "=", 'a"b\\c')]


@pytest.mark.parametrize(
    "text",
    [
        "a",
        "{}",
        "{job=}",
        '{job="x"',
        '{job="x"} extra',
        '{1job="x"}',
        '{job=="x"}',
        '{job="x",}',
        '{job=""}',
        '{job!="x"}',
        '{job=~".*"}',
        '{job=~"("}',
    ],
)
def test_parse_matchers_rejects(text):
    with pytest.raises(ConfigError):
        parse_matchers(text)


@pytest.mark.parametrize("name", ["id", "job", "_x", "A9_b"])
def test_valid_label_names(name):
    assert is_valid_label_name(name) is True


@pytest.mark.parametrize("name", ["", "1a", "a-b", "a.b", "a b"])
def test_invalid_label_names(name):
    assert is_valid_label_name(name) is False


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        parse_int("a")