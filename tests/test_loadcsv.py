import json

import pytest
import responses

from glovesearch.loadcsv import clean_html, main, read_csv

BASE = "http://localhost:9200"


def _write(path, text):
    path.write_text(text, encoding="utf-8", newline="")
    return path


def test_clean_html_replaces_breaks():
    assert clean_html("one<br />two") == "one two"


def test_clean_html_strips_all_tag_markup():
    result = clean_html("<i>hi</i> there<br>friend<br/>!")
    assert "<" not in result and ">" not in result
    assert "hi" in result and "there" in result and "friend" in result
    assert result.split() == ["hi", "there", "friend", "!"]


def test_clean_html_unclosed_tag_drops_rest():
    assert clean_html("keep <lost forever") == "keep "


def test_clean_html_plain_text_unchanged():
    assert clean_html("Nothing special here.") == "Nothing special here."


def test_read_csv_extracts_review_column(tmp_path):
    path = _write(
        tmp_path / "reviews.csv",
        'id, Review ,sentiment\n'
        '1,"Great movie, loved it",positive\n'
        '2,"<br />   ",negative\n'
        '\n'
        '3,Dull <b>plot</b>,negative\n',
    )
    docs = read_csv(path)
    assert docs[0] == "Great movie, loved it"
    assert len(docs) == 2
    assert "<" not in docs[1]
    assert docs[1].split() == ["Dull", "plot"]


def test_read_csv_stops_at_field_count_mismatch(tmp_path):
    path = _write(tmp_path / "reviews.csv", "review,label\nfirst,a\nsecond\nthird,c\n")
    assert read_csv(path) == ["first"]


def test_read_csv_without_review_column(tmp_path):
    path = _write(tmp_path / "reviews.csv", "text,label\nhello,a\n")
    with pytest.raises(ValueError, match="no 'review' column"):
        read_csv(path)


def test_read_csv_empty_file(tmp_path):
    path = _write(tmp_path / "reviews.csv", "")
    with pytest.raises(ValueError, match="reading header"):
        read_csv(path)


def test_main_requires_csv(capsys):
    assert main([]) == 1
    assert "Usage: loadcsv" in capsys.readouterr().err


def test_main_missing_file(tmp_path):
    assert main(["--csv", str(tmp_path / "nope.csv")]) == 1


def test_main_bulk_loads_reviews(tmp_path):
    path = _write(tmp_path / "reviews.csv", "review\nfirst review\nsecond review\n")
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.HEAD, f"{BASE}/reviews", status=200)
        rsps.add(responses.GET, f"{BASE}/reviews/_count", json={"count": 0})
        rsps.add(responses.POST, f"{BASE}/reviews/_bulk", json={"errors": False})
        rsps.add(responses.POST, f"{BASE}/reviews/_refresh", json={})

        status = main(["--csv", str(path), "--es-addr", BASE, "--es-index", "reviews", "--batch", "1"])
        assert status == 0

        bulk_calls = [call for call in rsps.calls if call.request.url.endswith("/_bulk")]
        assert len(bulk_calls) == 2
        lines = bulk_calls[0].request.body.decode("utf-8").splitlines()
        assert json.loads(lines[0]) == {"index": {}}
        assert json.loads(lines[1]) == {"content": "first review"}
        assert any(call.request.url.endswith("/_refresh") for call in rsps.calls)


def test_main_reports_bulk_failure(tmp_path):
    path = _write(tmp_path / "reviews.csv", "review\nonly one\n")
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.HEAD, f"{BASE}/reviews", status=200)
        rsps.add(responses.GET, f"{BASE}/reviews/_count", json={"count": 0})
        rsps.add(responses.POST, f"{BASE}/reviews/_bulk", status=500, json={"error": "boom"})

        assert main(["--csv", str(path), "--es-addr", BASE, "--es-index", "reviews"]) == 1