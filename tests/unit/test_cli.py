"""
Tests for the granite command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from granite.cli import cli


@pytest.fixture
def invoke(transport):
    """Invoke the CLI with requests routed to the stub backend."""
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, list(args), obj={"transport": transport})
    return _invoke


class TestSQLCommands:
    """Tests for `granite sql ...`."""

    def test_classify(self, invoke):
        assert invoke("sql", "classify", "  select 1").output.strip() == "read"
        assert invoke("sql", "classify", "update t set a=1").output.strip() == "write"
        assert invoke("sql", "classify", "insert into t (a) values (1) returning a").output.strip() == "read"

    def test_run_select_as_json(self, invoke, backend):
        backend.respond("SELECT", {"columns": ["n"], "rows": [{"n": 1}]})

        result = invoke("--json", "sql", "run", "pg", "SELECT 1 AS n")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"columns": ["n"], "rows": [{"n": 1}]}

    def test_run_update_prints_affected(self, invoke, backend):
        backend.respond("UPDATE", {"rows_affected": 4})

        result = invoke("sql", "run", "pg", "UPDATE t SET a = 1")

        assert result.exit_code == 0, result.output
        assert "4 row(s) affected" in result.output

    def test_run_script_file(self, invoke, backend, tmp_path):
        script = tmp_path / "seed.sql"
        script.write_text("INSERT INTO t VALUES (1);\nINSERT INTO t VALUES (2);\n")
        backend.respond("INSERT", {"rows_affected": 1})

        result = invoke("--json", "sql", "run", "pg", "--file", str(script))

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [{"rowsAffected": 1}, {"rowsAffected": 1}]
        assert len(backend.calls_to("execute")) == 2

    def test_run_requires_statement_or_file(self, invoke):
        result = invoke("sql", "run", "pg")
        assert result.exit_code == 1

    def test_backend_error_exits_1(self, invoke, backend):
        backend.respond("SELEC ", {"message": "syntax error"}, status=400)

        result = invoke("sql", "run", "pg", "SELEC 1")

        assert result.exit_code == 1
        assert "syntax error" in result.output

    def test_in_band_error_exits_1(self, invoke, backend):
        backend.respond("SELECT", {"error": "permission denied"})

        result = invoke("sql", "run", "pg", "SELECT * FROM secrets")

        assert result.exit_code == 1
        assert "permission denied" in result.output

    def test_tables(self, invoke, backend):
        backend.respond("pg_tables", {"rows": [{"tablename": "orders"}, {"tablename": "users"}]})

        result = invoke("--json", "sql", "tables", "pg", "--driver", "postgres")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ["orders", "users"]

    def test_unknown_driver_is_rejected(self, invoke):
        result = invoke("sql", "tables", "pg", "--driver", "mongodb")
        assert result.exit_code == 2

    def test_columns(self, invoke, backend):
        backend.respond("DESCRIBE", {"rows": [{"Field": "id", "Type": "int", "Null": "NO", "Key": "PRI"}]})

        result = invoke("--json", "sql", "columns", "my", "orders", "--driver", "mysql")

        assert json.loads(result.output) == [
            {"name": "id", "type": "int", "nullable": False, "primaryKey": True}
        ]

    def test_schema(self, invoke, backend):
        backend.respond("pg_tables", {"rows": [{"tablename": "a"}, {"tablename": "b"}, {"tablename": "c"}]})

        result = invoke("--json", "sql", "schema", "pg", "--driver", "postgres", "--limit", "2")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["tables"] == ["a", "b", "c"]
        assert sorted(data["columns"]) == ["a", "b"]


class TestStorageCommands:
    """Tests for `granite storage ...`."""

    def test_containers(self, invoke, photos):
        result = invoke("--json", "storage", "containers", "s3")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)[0]["name"] == "media"

    def test_ls(self, invoke, photos):
        result = invoke("--json", "storage", "ls", "s3", photos, "photos/")

        data = json.loads(result.output)
        assert data["prefixes"] == ["photos/vacation/"]
        assert [o["key"] for o in data["objects"]] == ["photos/a.jpg"]

    def test_ls_table_output(self, invoke, photos):
        result = invoke("storage", "ls", "s3", photos, "photos/")

        assert result.exit_code == 0, result.output
        assert "photos/vacation/" in result.output
        assert "photos/a.jpg" in result.output

    def test_rm_keys(self, invoke, backend, photos):
        result = invoke("storage", "rm", "s3", photos, "readme.txt")

        assert result.exit_code == 0, result.output
        assert backend.deleted_keys == ["readme.txt"]

    def test_rm_recursive(self, invoke, backend, photos):
        result = invoke("--json", "storage", "rm", "s3", photos, "photos", "--recursive")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"deleted": 3}
        assert list(backend.containers[photos]) == ["readme.txt"]

    def test_rm_recursive_container_root_exits_1(self, invoke, backend, photos):
        result = invoke("storage", "rm", "s3", photos, "/", "--recursive")

        assert result.exit_code == 1
        assert "empty prefix" in result.output
        assert backend.deleted_keys == []

    def test_upload(self, invoke, backend, tmp_path):
        local = tmp_path / "notes.txt"
        local.write_bytes(b"hello")

        result = invoke("storage", "upload", "s3", "docs", "notes/today.txt", str(local), "--content-type", "text/plain")

        assert result.exit_code == 0, result.output
        upload = backend.calls_to("upload")[0]
        assert upload["key"] == "notes/today.txt"
        assert upload["content"] == b"hello"

    def test_presign(self, invoke, photos):
        result = invoke("storage", "presign", "s3", photos, "photos/a.jpg", "--expires-in", "120")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "https://stub.example/media/photos/a.jpg?expires=120"

    def test_missing_object_exits_1(self, invoke, photos):
        result = invoke("storage", "presign", "s3", photos, "nope.txt")

        assert result.exit_code == 1
        assert "not found" in result.output
