from unittest.mock import MagicMock, patch

import requests

import recalculate_wages


def _response(status_code, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


@patch("recalculate_wages.requests.post")
def test_request_recalculation_success(mock_post):
    mock_post.return_value = _response(200, {"processed": 3, "succeeded": 3})

    success, result = recalculate_wages.request_recalculation("acme", True, base_url="http://server")

    assert success is True
    assert result["processed"] == 3
    args, kwargs = mock_post.call_args
    assert args[0] == "http://server/admin/wages/recalculate"
    assert kwargs["json"] == {"organization_id": "acme", "force": True}
    assert "X-Admin-Secret" in kwargs["headers"]


@patch("recalculate_wages.requests.post")
def test_request_recalculation_http_error(mock_post):
    mock_post.return_value = _response(409, text="already running")

    success, result = recalculate_wages.request_recalculation()

    assert success is False
    assert result == "HTTP 409: already running"


@patch("recalculate_wages.requests.post", side_effect=requests.ConnectionError("refused"))
def test_request_recalculation_connection_error(mock_post):
    success, result = recalculate_wages.request_recalculation()

    assert success is False
    assert result.startswith("Request error:")


def test_format_summary_lists_failures_and_mismatches():
    lines = recalculate_wages.format_summary({
        "processed": 10, "succeeded": 9, "failed": 1, "skipped": 2,
        "cancelled": True, "unassigned_hours_total": 1.5,
        "failures": [{"record_id": 5, "error_kind": "IncompleteShiftError", "message": "Entry 5 has no clock-out"}],
        "mismatches": [{"record_id": 7, "stored_hours": 9.0, "computed_hours": 8.0}],
    })

    assert lines[0] == "📊 Recalculation Summary:"
    assert "   Processed: 10" in lines
    assert "   Unassigned hours: 1.50" in lines
    assert any("Entry 5: IncompleteShiftError" in line for line in lines)
    assert any("Entry 7: stored 9.0h" in line for line in lines)
    assert any("cancelled" in line for line in lines)
    assert any("outside the configured wage windows" in line for line in lines)


def test_format_summary_clean_run():
    lines = recalculate_wages.format_summary({"processed": 2, "succeeded": 2, "unassigned_hours_total": 0.0})
    assert len(lines) == 6


@patch("recalculate_wages.request_recalculation", return_value=(False, "HTTP 403: Invalid admin credentials"))
@patch("recalculate_wages.get_user_inputs", return_value=(None, False))
def test_main_returns_error_code_on_failure(mock_inputs, mock_request):
    assert recalculate_wages.main() == 1
