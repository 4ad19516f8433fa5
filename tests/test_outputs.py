from __future__ import annotations

import json

from ade_client.outputs.files import safe_stem, save_extraction_result, save_parse_result, unique_stems
from ade_client.schemas import ExtractionResult, ParseResult


def test_save_parse_result_writes_json_and_markdown(tmp_path, parse_payload):
    result = ParseResult.model_validate(parse_payload)

    json_path, markdown_path = save_parse_result(result, tmp_path / "out")

    assert json_path.name == "invoice.json"
    assert markdown_path.read_text(encoding="utf-8") == parse_payload["markdown"]
    saved = json.loads(json_path.read_text(encoding="utf-8"))
    assert saved["splits"][0]["class"] == "page"
    assert saved["chunks"][2]["type"] == "scan_code"


def test_save_extraction_result_uses_given_stem(tmp_path, extract_payload):
    result = ExtractionResult.model_validate(extract_payload)

    path = save_extraction_result(result, tmp_path, stem="Q3 invoice.pdf")

    assert path.name == "Q3_invoice_extraction.json"
    assert json.loads(path.read_text(encoding="utf-8"))["extraction"]["total"] == 42.0


def test_safe_stem():
    assert safe_stem("../weird name?.pdf") == "weird_name"
    assert safe_stem("...") == "document"


def test_unique_stems_numbers_repeated_names():
    assert unique_stems(["a/report.pdf", "b/report.pdf", "report_2.pdf", "c/report.pdf"]) == [
        "report",
        "report_2",
        "report_2_2",
        "report_3",
    ]
    assert unique_stems(["v1.2.pdf", "v1.3.pdf"]) == ["v1_2", "v1_3"]
