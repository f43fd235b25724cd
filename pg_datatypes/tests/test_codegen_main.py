from pathlib import Path
from unittest.mock import patch

import pytest

from pg_datatypes.codegen.main import (
    GeneratorContext,
    build_unit,
    build_unit_spec,
    build_units,
    generate,
    load_tables,
    main,
)
from pg_datatypes.shared.config import GeneratorConfig
from pg_datatypes.shared.errors import (
    IdentifierCollisionError,
    IntrospectionError,
    SchemaValidationError,
)
from pg_datatypes.shared.models import Column, Table

USERS = Table.of(
    "users",
    [
        Column("id", "serial", False),
        Column("email", "varchar(100)", False),
        Column("google_user_id", "varchar(100)", True),
    ],
)

USERS_UNIT = '''package users

type Id = int32
type Email = string
type GoogleUserId = *string

type usersColumnNames struct {
\tId string
\tEmail string
\tGoogleUserId string
}

var C = usersColumnNames{
\tId: "id",
\tEmail: "email",
\tGoogleUserId: "google_user_id",
}

var Table = "users"
'''

SNAPSHOT = """
tables:
  - name: users
    columns:
      - name: id
        type: serial
        nullable: false
      - name: created_at
        type: timestamp with time zone
        nullable: false
  - name: schema_migrations
    columns:
      - name: version
        type: bigint
        nullable: false
"""


class TestBuildUnitSpec:
    def test_columns_in_schema_order(self):
        spec = build_unit_spec(USERS)

        assert spec.struct_name == "usersColumnNames"
        assert spec.package_name == "users"
        assert [c.field_name for c in spec.columns] == ["Id", "Email", "GoogleUserId"]
        assert [c.name for c in spec.columns] == ["id", "email", "google_user_id"]
        assert [c.type_expr for c in spec.columns] == ["int32", "string", "*string"]
        assert spec.imports == ()

    def test_imports_deduplicated_and_ordered(self):
        table = Table.of(
            "orders",
            [
                Column("placed_at", "timestamp", False),
                Column("total", "numeric", False),
                Column("tax", "numeric(10,2)", True),
                Column("shipped_at", "timestamptz", True),
                Column("id", "uuid", False),
                Column("meta", "jsonb", True),
            ],
        )

        spec = build_unit_spec(table)
        assert spec.imports == (
            "encoding/json",
            "github.com/shopspring/decimal",
            "time",
            "github.com/google/uuid",
        )

    def test_identifier_collision(self):
        table = Table.of(
            "users",
            [Column("user_id", "int4", False), Column("userId", "int4", False)],
        )

        with pytest.raises(IdentifierCollisionError) as exc_info:
            build_unit_spec(table)

        assert exc_info.value.identifier == "UserId"
        assert exc_info.value.columns == ("user_id", "userId")

    def test_duplicate_column_name(self):
        table = Table.of("t", [Column("id", "int4", False), Column("id", "text", True)])

        with pytest.raises(IdentifierCollisionError):
            build_unit_spec(table)

    def test_column_without_identifier(self):
        table = Table.of("t", [Column("__", "int4", False)])

        with pytest.raises(SchemaValidationError) as exc_info:
            build_unit_spec(table)
        assert exc_info.value.field == "__"

    def test_column_starting_with_digit(self):
        table = Table.of("t", [Column("2fa_enabled", "bool", False)])

        with pytest.raises(SchemaValidationError) as exc_info:
            build_unit_spec(table)
        assert exc_info.value.field == "2fa_enabled"

    @pytest.mark.parametrize(
        "column_name,identifier",
        [("c", "C"), ("table", "Table"), ("Table", "Table")],
    )
    def test_column_clashes_with_package_level_name(self, column_name, identifier):
        table = Table.of("t", [Column("id", "int4", False), Column(column_name, "text", False)])

        with pytest.raises(IdentifierCollisionError) as exc_info:
            build_unit_spec(table)

        assert exc_info.value.identifier == identifier
        assert exc_info.value.columns[1] == column_name

    def test_column_clashes_with_struct_name(self):
        table = Table.of("Audit", [Column("audit_column_names", "text", False)])

        with pytest.raises(IdentifierCollisionError) as exc_info:
            build_unit_spec(table)

        assert exc_info.value.identifier == "AuditColumnNames"

    def test_lowercase_c_prefixed_column_is_fine(self):
        table = Table.of("t", [Column("c_id", "int4", False), Column("tables", "text", False)])

        spec = build_unit_spec(table)
        assert [c.field_name for c in spec.columns] == ["CId", "Tables"]

    @pytest.mark.parametrize("table_name", ["../escaped", "a/b", "my-table", "type", ""])
    def test_table_name_must_be_go_package_name(self, table_name):
        with pytest.raises(SchemaValidationError) as exc_info:
            build_unit_spec(Table.of(table_name, [Column("id", "int4", False)]))
        assert "not a valid Go package name" in str(exc_info.value)


class TestBuildUnit:
    def test_users_scenario(self):
        assert build_unit(USERS) == USERS_UNIT

    def test_reuses_context(self):
        ctx = GeneratorContext()
        assert build_unit(USERS, ctx) == build_unit(USERS, ctx) == USERS_UNIT

    def test_import_block(self):
        table = Table.of(
            "payments",
            [
                Column("amount", "numeric", False),
                Column("fee", "numeric", True),
                Column("refund", "numeric(8,2)", True),
                Column("paid_at", "timestamp without time zone", False),
            ],
        )

        unit = build_unit(table)

        assert unit == '''package payments

import (
\t"github.com/shopspring/decimal"
\t"time"
)

type Amount = decimal.Decimal
type Fee = *decimal.Decimal
type Refund = *decimal.Decimal
type PaidAt = time.Time

type paymentsColumnNames struct {
\tAmount string
\tFee string
\tRefund string
\tPaidAt string
}

var C = paymentsColumnNames{
\tAmount: "amount",
\tFee: "fee",
\tRefund: "refund",
\tPaidAt: "paid_at",
}

var Table = "payments"
'''
        assert unit.count('"github.com/shopspring/decimal"') == 1

    def test_no_import_block_without_imports(self):
        assert "import" not in build_unit(USERS)

    def test_zero_columns(self):
        unit = build_unit(Table("empty"))

        assert unit == '''package empty

type emptyColumnNames struct {
}

var C = emptyColumnNames{
}

var Table = "empty"
'''

    def test_column_name_lookup_matches_input(self):
        names = ["a", "b_c", "d_e_f", "g"]
        table = Table.of("letters", [Column(n, "text", False) for n in names])

        unit = build_unit(table)
        lookup = unit.split("var C = lettersColumnNames{\n")[1].split("}")[0]
        entries = [line.strip() for line in lookup.splitlines() if line.strip()]

        assert entries == ['A: "a",', 'BC: "b_c",', 'DEF: "d_e_f",', 'G: "g",']


class TestBuildUnits:
    TABLES = [
        USERS,
        Table.of("posts", [Column("id", "bigserial", False), Column("body", "text", True)]),
        Table.of("audit", [Column("at", "timestamptz", False)]),
    ]

    def test_keeps_input_order(self):
        units = build_units(self.TABLES)
        assert list(units) == ["users", "posts", "audit"]
        assert units["users"] == USERS_UNIT

    def test_parallel_matches_sequential(self):
        sequential = build_units(self.TABLES)
        parallel = build_units(self.TABLES, parallel=True, max_workers=3)

        assert parallel == sequential
        assert list(parallel) == list(sequential)

    def test_duplicate_table(self):
        with pytest.raises(SchemaValidationError):
            build_units([USERS, USERS])

    def test_parallel_failure_names_error(self):
        bad = Table.of("bad", [Column("x_y", "text", False), Column("xY", "text", False)])

        with pytest.raises(IdentifierCollisionError):
            build_units([USERS, bad], parallel=True)

    def test_no_tables(self):
        assert build_units([]) == {}

    def test_rejects_path_like_table_name(self):
        with pytest.raises(SchemaValidationError):
            build_units([USERS, Table.of("../escaped", [Column("id", "int4", False)])])

    def test_rejects_path_like_table_name_in_parallel(self):
        tables = [USERS, Table.of("../escaped", [Column("id", "int4", False)])]

        with pytest.raises(SchemaValidationError):
            build_units(tables, parallel=True)

    def test_non_ascii_column_name_literal(self):
        table = Table.of("words", [Column("naïve_score", "int4", False)])

        unit = build_units([table])["words"]

        assert "type NaïveScore = int32" in unit
        assert '\tNaïveScore: "naïve_score",' in unit

    def test_emoji_column_is_not_an_identifier(self):
        table = Table.of("emoji", [Column("x\U0001F600", "text", False)])

        with pytest.raises(SchemaValidationError):
            build_units([table])


class TestLoadTables:
    def test_snapshot_preferred(self, tmp_path):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)
        config = GeneratorConfig(
            connection="postgresql://unused",
            output=tmp_path,
            snapshots=(snapshot,),
        )

        with patch("pg_datatypes.codegen.main.SchemaIntrospector") as mock_cls:
            tables = load_tables(config)

        mock_cls.assert_not_called()
        assert [t.name for t in tables] == ["users", "schema_migrations"]

    def test_database(self, tmp_path):
        config = GeneratorConfig(
            connection="postgresql://localhost/app",
            output=tmp_path,
            schema_name="app",
            connect_timeout=3,
        )

        with patch("pg_datatypes.codegen.main.SchemaIntrospector") as mock_cls:
            mock_cls.return_value.get_tables.return_value = [USERS]
            tables = load_tables(config)

        mock_cls.assert_called_once_with(
            "postgresql://localhost/app",
            schema_name="app",
            connect_timeout=3,
        )
        assert tables == [USERS]


class TestGenerate:
    def test_generate_from_snapshot(self, tmp_path):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)
        output = tmp_path / "out"

        paths = generate(GeneratorConfig(output=output, snapshots=(snapshot,)))

        assert paths == [
            output / "users" / "users.go",
            output / "schema_migrations" / "schema_migrations.go",
        ]
        content = (output / "users" / "users.go").read_text()
        assert 'import (\n\t"time"\n)' in content
        assert "type CreatedAt = time.Time" in content

    def test_generate_with_filters(self, tmp_path):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)
        output = tmp_path / "out"

        paths = generate(
            GeneratorConfig(output=output, snapshots=(snapshot,), exclude=("schema_*",))
        )

        assert paths == [output / "users" / "users.go"]
        assert not (output / "schema_migrations").exists()

    def test_introspection_failure_writes_nothing(self, tmp_path):
        output = tmp_path / "out"
        config = GeneratorConfig(connection="postgresql://localhost/app", output=output)

        with patch("pg_datatypes.codegen.main.SchemaIntrospector") as mock_cls:
            mock_cls.return_value.get_tables.side_effect = IntrospectionError("boom")
            with pytest.raises(IntrospectionError):
                generate(config)

        assert not output.exists()

    def test_collision_writes_nothing(self, tmp_path):
        output = tmp_path / "out"
        config = GeneratorConfig(connection="postgresql://localhost/app", output=output)
        bad = Table.of("bad", [Column("a_b", "text", False), Column("aB", "text", False)])

        with patch("pg_datatypes.codegen.main.SchemaIntrospector") as mock_cls:
            mock_cls.return_value.get_tables.return_value = [USERS, bad]
            with pytest.raises(IdentifierCollisionError):
                generate(config)

        assert not output.exists()

    def test_dry_run(self, tmp_path):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)
        output = tmp_path / "out"

        paths = generate(GeneratorConfig(output=output, snapshots=(snapshot,), dry_run=True))

        assert len(paths) == 2
        assert not output.exists()


class TestMain:
    def test_main_snapshot(self, tmp_path, capsys):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)
        output = tmp_path / "out"

        main(["--schema-file", str(snapshot), "--output", str(output)])

        captured = capsys.readouterr()
        assert "Generated 2 table unit(s)" in captured.out
        assert (output / "users" / "users.go").exists()

    def test_main_dry_run(self, tmp_path, capsys):
        snapshot = tmp_path / "schema.yaml"
        snapshot.write_text(SNAPSHOT)
        output = tmp_path / "out"

        main(["--schema-file", str(snapshot), "-o", str(output), "--dry-run"])

        captured = capsys.readouterr()
        assert "Would write" in captured.out
        assert not output.exists()

    def test_main_requires_output(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DB_CONNECTION_STRING", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            main(["--db", "postgresql://localhost/app"])
        assert "Error: Output path is required" in str(exc_info.value)

    def test_main_requires_connection(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DB_CONNECTION_STRING", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            main(["--output", str(tmp_path)])
        assert "connection string is required" in str(exc_info.value)

    def test_main_env_connection(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_CONNECTION_STRING", "postgresql://env/app")

        with patch("pg_datatypes.codegen.main.generate") as mock_generate:
            mock_generate.return_value = []
            main(["--output", str(tmp_path), "--no-parallel", "--workers", "2"])

        config = mock_generate.call_args.args[0]
        assert config.connection == "postgresql://env/app"
        assert config.output == tmp_path
        assert config.parallel is False
        assert config.workers == 2

    def test_main_flag_beats_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_CONNECTION_STRING", "postgresql://env/app")

        with patch("pg_datatypes.codegen.main.generate") as mock_generate:
            mock_generate.return_value = []
            main(["-d", "postgresql://flag/app", "-o", str(tmp_path)])

        assert mock_generate.call_args.args[0].connection == "postgresql://flag/app"

    def test_main_config_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DB_CONNECTION_STRING", raising=False)
        config_path = tmp_path / "datatypes.yaml"
        config_path.write_text(
            "connection: postgresql://file/app\noutput: gen\ninclude: [users]\n"
        )

        with patch("pg_datatypes.codegen.main.generate") as mock_generate:
            mock_generate.return_value = []
            main(["--config", str(config_path)])

        config = mock_generate.call_args.args[0]
        assert config.connection == "postgresql://file/app"
        assert config.output == tmp_path.resolve() / "gen"
        assert config.include == ("users",)

    def test_main_introspection_failure(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DB_CONNECTION_STRING", raising=False)

        with patch("pg_datatypes.codegen.main.SchemaIntrospector") as mock_cls:
            mock_cls.return_value.get_tables.side_effect = IntrospectionError(
                "Failed to read database schema: refused"
            )
            with pytest.raises(SystemExit) as exc_info:
                main(["-d", "postgresql://localhost/app", "-o", str(tmp_path / "out")])

        assert "Error: Failed to read database schema" in str(exc_info.value)
        assert not (tmp_path / "out").exists()

    def test_main_missing_snapshot(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--schema-file", str(tmp_path / "missing.yaml"), "-o", str(tmp_path)])
        assert "Error:" in str(exc_info.value)
