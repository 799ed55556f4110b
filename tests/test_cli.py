import json

import pytest

from stack_mapper.cli import load_tools, main, parse_tool_spec
from stack_mapper.rule_engine import ToolInput


def test_parse_tool_spec():
    assert parse_tool_spec("Zendesk=Service") == ToolInput("Zendesk", "Service")
    assert parse_tool_spec(" Notion ") == ToolInput("Notion", "Other")
    with pytest.raises(ValueError):
        parse_tool_spec("=Service")


def test_load_tools_from_csv(tmp_path):
    path = tmp_path / "tools.csv"
    path.write_text("name,category\nSalesforce,Sales\n,Sales\nGitHub,\n", encoding="utf-8")
    assert load_tools(str(path)) == [ToolInput("Salesforce", "Sales"), ToolInput("GitHub", "Other")]


def test_load_tools_from_json(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text(json.dumps([{"name": "Marketo", "category": "Marketing"}]), encoding="utf-8")
    assert load_tools(str(path)) == [ToolInput("Marketo", "Marketing")]


def test_load_tools_rejects_non_list_json(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        load_tools(str(path))


def test_json_output(capsys):
    main(["--tool", "Intercom=Service", "--tool", "Zendesk=Service", "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert [item["action"] for item in payload["items"]] == ["Replace", "Replace"]
    assert payload["summary"]["estimated_spend"] == 148


def test_csv_output_from_file(tmp_path, capsys):
    path = tmp_path / "tools.csv"
    path.write_text("name,category\nSalesforce,Sales\nPipedrive,Sales\n", encoding="utf-8")
    main([str(path), "--csv"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("name,category")
    assert len(lines) == 3
    assert all(",Evaluate," in line for line in lines[1:])


def test_plain_output(capsys):
    main(["--tool", "HubSpot=CRM"])
    out = capsys.readouterr().out
    assert "Single tool in key category" in out
    assert "No overlapping subdomains." in out


def test_rich_output(capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    main(["--tool", "Marketo=Marketing", "--ui"])
    out = capsys.readouterr().out
    assert "Marketo" in out
    assert "HubSpot Marketing Hub" in out


def test_custom_cost_table(tmp_path, capsys):
    costs = tmp_path / "costs.json"
    costs.write_text(json.dumps({"tools": [{"name": "Notion", "cost_mo": 10}]}), encoding="utf-8")
    main(["--tool", "Notion=Docs", "--costs", str(costs), "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["items"][0]["cost_mo"] == 10


def test_missing_tools_is_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2
    assert "no tools given" in capsys.readouterr().err


def test_bad_cost_table_is_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["--tool", "Slack=Other", "--costs", str(tmp_path / "missing.json")])
    assert exc.value.code == 2


def test_rich_output_treats_brackets_as_text(capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    main(["--tool", "Acme [/x]=Other [beta]", "--ui"])
    out = capsys.readouterr().out
    assert "Acme [/x]" in out
    assert "Other [beta]" in out


def test_csv_with_byte_order_mark(tmp_path):
    path = tmp_path / "tools.csv"
    path.write_bytes(b"\xef\xbb\xbfname,category\r\nSalesforce,Sales\r\n")
    assert load_tools(str(path)) == [ToolInput("Salesforce", "Sales")]


def test_plain_output_shows_cost_basis_and_gaps(capsys):
    main(["--tool", "Salesforce=Sales", "--tool", "Slack=Comms"])
    out = capsys.readouterr().out
    assert "$150 (per user, tool)" in out
    assert "I don't see an ERP" in out
    assert "Do you also use a helpdesk (Zendesk)?" in out


def test_json_output_includes_cost_source_and_suggestions(capsys):
    main(["--tool", "Mystery=Marketing", "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["items"][0]["cost_source"] == "category"
    assert payload["items"][0]["cost_basis"] == "flat"
    assert payload["suggestions"][0]["id"] == "erp-missing"


@pytest.mark.parametrize("content", [b'{"tools": null}', b'{"tools": 5}', b"\xff\xfe{}"])
def test_malformed_cost_table_is_usage_error(tmp_path, content):
    costs = tmp_path / "costs.json"
    costs.write_bytes(content)
    with pytest.raises(SystemExit) as exc:
        main(["--tool", "Slack=Other", "--costs", str(costs)])
    assert exc.value.code == 2
