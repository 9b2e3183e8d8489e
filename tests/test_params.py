"""
Unit tests for tool argument parsing and validation
"""
import pytest

from es_mcp.errors import ElasticsearchError, ErrorCodes
from es_mcp.src.tools.params import (
    MAX_RESULT_WINDOW,
    get_bool,
    get_int,
    get_string,
    parse_json_param,
    parse_query,
    require_string,
    validate_pagination,
    validate_timeout,
)


class TestRequireString:
    """Tests for mandatory string parameters"""

    def test_present(self):
        assert require_string({"index": "logs-*"}, "index") == "logs-*"

    def test_missing_is_distinct_error(self):
        with pytest.raises(ElasticsearchError) as exc:
            require_string({}, "index")
        assert exc.value.code == ErrorCodes.MISSING_PARAMETER
        assert exc.value.message == "Missing 'index' parameter"

    def test_null_counts_as_missing(self):
        with pytest.raises(ElasticsearchError) as exc:
            require_string({"index": None}, "index")
        assert exc.value.code == ErrorCodes.MISSING_PARAMETER

    @pytest.mark.parametrize("value", ["", "   ", 42, ["logs"]])
    def test_malformed_value(self, value):
        with pytest.raises(ElasticsearchError) as exc:
            require_string({"index": value}, "index")
        assert exc.value.code == ErrorCodes.INVALID_PARAMETER
        assert exc.value.details == {"parameter": "index", "value": value}


class TestScalars:
    """Tests for loosely-typed numbers, strings and booleans"""

    def test_int_default(self):
        assert get_int({}, "size", 10) == 10
        assert get_int({"size": ""}, "size", 10) == 10

    @pytest.mark.parametrize("value,expected", [(5, 5), (5.0, 5), ("7", 7), (" 8 ", 8)])
    def test_int_forms(self, value, expected):
        assert get_int({"size": value}, "size", 10) == expected

    @pytest.mark.parametrize("value", ["ten", 2.5, True, {"n": 1}])
    def test_int_rejects(self, value):
        with pytest.raises(ElasticsearchError) as exc:
            get_int({"size": value}, "size", 10)
        assert exc.value.code == ErrorCodes.INVALID_PARAMETER
        assert "'size'" in exc.value.message

    def test_bool_forms(self):
        assert get_bool({}, "track_total_hits", True) is True
        assert get_bool({"track_total_hits": False}, "track_total_hits", True) is False
        assert get_bool({"track_total_hits": "false"}, "track_total_hits", True) is False
        assert get_bool({"track_total_hits": "TRUE"}, "track_total_hits", False) is True

    def test_bool_rejects(self):
        with pytest.raises(ElasticsearchError) as exc:
            get_bool({"track_total_hits": "maybe"}, "track_total_hits", True)
        assert exc.value.code == ErrorCodes.INVALID_PARAMETER

    def test_string_default_and_type(self):
        assert get_string({}, "pattern", "*") == "*"
        with pytest.raises(ElasticsearchError):
            get_string({"pattern": 3}, "pattern", "*")


class TestPagination:
    """Tests for size/from bounds"""

    @pytest.mark.parametrize("size,from_", [
        (0, 0), (10, 0), (MAX_RESULT_WINDOW, 0), (0, MAX_RESULT_WINDOW),
        (5000, 5000), (1, 9999),
    ])
    def test_within_window(self, size, from_):
        validate_pagination(size, from_)

    @pytest.mark.parametrize("size,from_,message", [
        (-1, 0, "Size parameter must be between 0 and 10000"),
        (10001, 0, "Size parameter must be between 0 and 10000"),
        (10, -1, "From parameter must be >= 0"),
        (5000, 5001, "from + size must not exceed 10000"),
        (1, MAX_RESULT_WINDOW, "from + size must not exceed 10000"),
    ])
    def test_outside_window(self, size, from_, message):
        with pytest.raises(ElasticsearchError) as exc:
            validate_pagination(size, from_)
        assert exc.value.code == ErrorCodes.INVALID_PARAMETER
        assert exc.value.message == message


class TestJsonParams:
    """Tests for JSON sub-document parameters"""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_means_absent(self, value):
        assert parse_json_param("sort", value) is None

    @pytest.mark.parametrize("name", ["query", "sort"])
    def test_whitespace_is_malformed(self, name):
        with pytest.raises(ElasticsearchError) as exc:
            parse_json_param(name, "   ")
        assert exc.value.code == ErrorCodes.INVALID_JSON
        assert exc.value.details == {"parameter": name, "value": "   "}

    def test_parses_text(self):
        assert parse_json_param("sort", '[{"@timestamp": "desc"}]') == [{"@timestamp": "desc"}]

    def test_accepts_decoded_values(self):
        assert parse_json_param("_source", ["a", "b"]) == ["a", "b"]

    def test_malformed_names_field_and_echoes_input(self):
        with pytest.raises(ElasticsearchError) as exc:
            parse_json_param("highlight", '{"fields": ')
        assert exc.value.code == ErrorCodes.INVALID_JSON
        assert exc.value.message.startswith("Invalid highlight JSON")
        assert '{"fields": ' in exc.value.message
        assert exc.value.details == {"parameter": "highlight", "value": '{"fields": '}

    def test_object_only(self):
        with pytest.raises(ElasticsearchError) as exc:
            parse_json_param("aggs", "[1, 2]", object_only=True)
        assert exc.value.code == ErrorCodes.INVALID_JSON


class TestQuery:
    """Tests for query defaulting"""

    @pytest.mark.parametrize("value", [None, "", "{}", " { } ", {}])
    def test_empty_becomes_match_all(self, value):
        assert parse_query(value) == {"match_all": {}}

    def test_match_all_is_not_shared(self):
        first = parse_query("")
        first["match_all"]["boost"] = 2
        assert parse_query("") == {"match_all": {}}

    def test_real_query_kept(self):
        assert parse_query('{"match": {"a": 1}}') == {"match": {"a": 1}}

    def test_invalid_query(self):
        with pytest.raises(ElasticsearchError) as exc:
            parse_query("{not json")
        assert exc.value.code == ErrorCodes.INVALID_JSON
        assert "query" in exc.value.message


class TestTimeout:
    """Tests for timeout strings"""

    def test_blank(self):
        assert validate_timeout("") is None

    @pytest.mark.parametrize("value", ["5s", "500ms", "1m", "2h", "100micros", "-1", "0"])
    def test_valid(self, value):
        assert validate_timeout(value) == value

    @pytest.mark.parametrize("value", ["5", "five seconds", "-1s", "1.5s"])
    def test_invalid(self, value):
        with pytest.raises(ElasticsearchError) as exc:
            validate_timeout(value)
        assert exc.value.code == ErrorCodes.INVALID_PARAMETER
