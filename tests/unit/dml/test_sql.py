"""Unit tests for SQL text generation."""

import pytest

from cartridge_sink.dml.columns import ColumnInfo, SchemaSnapshot
from cartridge_sink.dml.errors import SchemaBootstrapError, StatementBuildError
from cartridge_sink.dml.sql import (
    PreparedStatement,
    SQLTemplateBuilder,
    StatementKind,
    build_where_clause,
    reject_placeholder_names,
    validate_column_names,
    validate_table_name,
)

DECIMAL = "io.debezium.data.VariableScaleDecimal"


@pytest.fixture
def snapshot():
    return SchemaSnapshot(
        columns=(ColumnInfo("id", "int32"), ColumnInfo("total", "int32")),
        key_columns=(ColumnInfo("id", "int32"),),
    )


class TestSQLTemplateBuilder:
    """Test statement templates."""

    def test_insert_template(self, snapshot):
        builder = SQLTemplateBuilder("orders", snapshot)
        assert builder.build(StatementKind.INSERT) == "INSERT INTO orders (id, total) VALUES (?, ?)"

    def test_update_template(self, snapshot):
        builder = SQLTemplateBuilder("orders", snapshot)
        assert builder.build(StatementKind.UPDATE) == "UPDATE orders SET id = ?, total = ? WHERE "

    def test_delete_template(self, snapshot):
        builder = SQLTemplateBuilder("replica.orders", snapshot)
        assert builder.build(StatementKind.DELETE) == "DELETE FROM replica.orders WHERE "


class TestWhereClause:
    """Test row-identifying WHERE bodies."""

    def test_single_column(self):
        where = build_where_clause([ColumnInfo("id", "int32")], {"id": 7})

        assert where.sql == "id = ?"
        assert where.values == [7]
        assert [c.name for c in where.columns] == ["id"]

    def test_multiple_columns_joined_with_and(self):
        columns = [ColumnInfo("a", "int32"), ColumnInfo("b", "string")]
        where = build_where_clause(columns, {"a": 1, "b": "x"})

        assert where.sql == "a = ? AND b = ?"
        assert where.values == [1, "x"]

    def test_null_values_bind_nothing(self):
        columns = [ColumnInfo("a", "int32"), ColumnInfo("b", "string"), ColumnInfo("c", "int32")]
        where = build_where_clause(columns, {"a": 1, "b": None})

        assert where.sql == "a = ? AND b IS NULL AND c IS NULL"
        assert where.values == [1]
        assert where.sql.count("?") == len(where.values)

    def test_imprecise_numeric_cast(self):
        columns = [ColumnInfo("sku", "string"), ColumnInfo("price", "struct", DECIMAL)]
        where = build_where_clause(columns, {"sku": "A1", "price": {"scale": 2, "value": "BNI="}})

        assert where.sql == "sku = ? AND price::numeric = ?"
        assert where.values == ["A1", {"scale": 2, "value": "BNI="}]

    def test_empty_identity(self):
        where = build_where_clause([], {"id": 1})
        assert where.is_empty
        assert where.values == []


class TestIdentifierValidation:
    """Test identifier checks for the strict policy."""

    @pytest.mark.parametrize("table", ["orders", "replica.orders", "_t1", "ORDERS$HIST"])
    def test_valid_table_names(self, table):
        validate_table_name(table)

    @pytest.mark.parametrize("table", ["", "1orders", "orders; DROP TABLE x", "a.b.c", "my-table"])
    def test_invalid_table_names(self, table):
        with pytest.raises(SchemaBootstrapError, match="Invalid table name"):
            validate_table_name(table)

    def test_invalid_column_name(self):
        with pytest.raises(SchemaBootstrapError, match="Invalid column name"):
            validate_column_names([ColumnInfo("id", "int32"), ColumnInfo("total amount", "int32")])


class TestPreparedStatement:
    """Test bound statements."""

    def test_placeholder_count_matches(self):
        statement = PreparedStatement("orders", StatementKind.DELETE, "DELETE FROM orders WHERE id = ?", (1,))
        assert statement.placeholder_count == 1

    def test_placeholder_mismatch(self):
        with pytest.raises(StatementBuildError, match="1 placeholders but 2 parameters"):
            PreparedStatement("orders", StatementKind.DELETE, "DELETE FROM orders WHERE id = ?", (1, 2))


class TestPlaceholderNames:
    """Test identifiers that clash with bind placeholders."""

    def test_plain_names_accepted(self):
        reject_placeholder_names(["orders", "total amount", "ORDERS$HIST"])

    def test_question_mark_rejected(self):
        with pytest.raises(SchemaBootstrapError, match="placeholder character"):
            reject_placeholder_names(["id", "a?b"])
