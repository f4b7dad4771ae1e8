import argparse
import asyncio
import json

import compare_cli
from services.comparison_orchestrator import ComparisonOrchestrator


def test_load_property_file(tmp_path):
    path = tmp_path / "property.json"
    path.write_text(json.dumps({"id": 55, "address": "1 Quay Street, Galway", "unknown": 1}), encoding="utf-8")

    prop = compare_cli.load_property_file(str(path))

    assert prop.id == 55
    assert prop.address == "1 Quay Street, Galway"


def test_compare_from_file_prints_json(tmp_path, monkeypatch, capsys, comparison_config, static_adapter):
    path = tmp_path / "property.json"
    path.write_text(json.dumps({
        "id": 101,
        "price": 450000,
        "bedrooms": 3,
        "address": "123 Main Street, Dublin 4",
    }), encoding="utf-8")

    daft = static_adapter([{"id": "d1", "price": 460000, "bedrooms": 3, "address": "123 Main Street, Dublin 4"}])
    monkeypatch.setattr(
        compare_cli, "ComparisonOrchestrator",
        lambda: ComparisonOrchestrator(adapters={"daft": daft}, config=comparison_config),
    )

    args = argparse.Namespace(property_file=str(path), property_id=None, json=True, store=False)
    asyncio.run(compare_cli.cmd_compare(args))

    output = json.loads(capsys.readouterr().out)
    assert output["property"]["id"] == 101
    assert [f["key"] for f in output["fields"]] == comparison_config.field_keys
    price = next(f for f in output["fields"] if f["key"] == "price")
    assert price["sources"]["daft"] == 460000
    assert price["has_differences"] is True


def test_print_comparison_lists_every_source(comparison_config, reference_property, capsys):
    orchestrator = ComparisonOrchestrator(adapters={}, config=comparison_config)
    comparison = asyncio.run(orchestrator.compare_property_across_sources(reference_property))

    compare_cli.print_comparison(comparison)

    out = capsys.readouterr().out
    assert "Overall consistency: 100%" in out
    assert "Not configured" in out
    for source in comparison_config.sources:
        assert source.display_name in out


def test_sources_command(comparison_config, capsys):
    asyncio.run(compare_cli.cmd_sources(argparse.Namespace()))

    out = capsys.readouterr().out
    assert "CONFIGURED SOURCES" in out
    assert "propertyCounty" in out


class DummyTable:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def select(self, *args):
        return self

    def eq(self, column, value):
        self.client.filters.append((self.name, column, value))
        return self

    def order(self, *args, **kwargs):
        return self

    def limit(self, *args):
        return self

    def insert(self, record):
        self.client.inserted.append((self.name, record))
        return self

    def execute(self):
        return argparse.Namespace(data=self.client.rows.get(self.name, []))


class DummySupabase:
    def __init__(self, rows):
        self.rows = rows
        self.filters = []
        self.inserted = []

    def table(self, name):
        return DummyTable(self, name)


def test_audit_sorts_by_consistency_and_stores(monkeypatch, capsys, comparison_config, static_adapter):
    client = DummySupabase({"properties": [
        {"id": 101, "title": "Main Street semi", "price": 450000, "bedrooms": 3,
         "address": "123 Main Street, Dublin 4", "agency_id": "KNAM"},
        {"id": 202, "title": "Main Street reduced", "price": 300000, "bedrooms": 3,
         "address": "123 Main Street, Dublin 4", "agency_id": "KNAM"},
    ]})
    daft = static_adapter([{"id": "d1", "price": 450000, "bedrooms": 3, "address": "123 Main Street, Dublin 4"}])

    monkeypatch.setattr(compare_cli, "get_supabase_client", lambda: client)
    monkeypatch.setattr(
        compare_cli, "ComparisonOrchestrator",
        lambda: ComparisonOrchestrator(adapters={"daft": daft}, config=comparison_config),
    )

    args = argparse.Namespace(agency="KNAM", limit=10, concurrency=2, store=True)
    asyncio.run(compare_cli.cmd_audit(args))

    out = capsys.readouterr().out
    assert "AUDITING 2 PROPERTIES" in out
    assert out.index("Main Street reduced") < out.index("Main Street semi")
    assert "Compared: 2/2" in out
    assert "With critical issues: 1" in out
    assert "Stored: 2" in out

    assert ("properties", "agency_id", "KNAM") in client.filters
    stored = [record for table, record in client.inserted if table == "property_comparisons"]
    assert sorted(record["property_id"] for record in stored) == [101, 202]
    assert daft.calls == 2


def test_audit_without_properties(monkeypatch, capsys, comparison_config):
    monkeypatch.setattr(compare_cli, "get_supabase_client", lambda: DummySupabase({}))

    args = argparse.Namespace(agency=None, limit=10, concurrency=None, store=False)
    asyncio.run(compare_cli.cmd_audit(args))

    assert "No properties to audit" in capsys.readouterr().out
