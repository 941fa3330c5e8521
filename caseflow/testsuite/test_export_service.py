import pytest

from caseflow.models.test_case import decode_cases
from caseflow.services.export_service import ExportError, ExportFormat, ExportService


class BrokenEncoder:
    def export_cases(self, cases):
        raise RuntimeError("disk full")

    def export_groups(self, groups):
        raise RuntimeError("disk full")


@pytest.mark.parametrize(
    "fmt, filename",
    [("xlsx", "testcases.xlsx"), ("xmind", "testcases.xmind"), ("html", "testcases.html"), ("json", "testcases.json")],
)
def test_case_artifact_names(fmt, filename, login_case):
    artifact = ExportService().export_cases(fmt, [login_case])
    assert artifact.filename == filename
    assert artifact.content


@pytest.mark.parametrize("fmt", list(ExportFormat))
def test_group_artifact_names(fmt, login_group):
    artifact = ExportService().export_groups(fmt, [login_group])
    assert artifact.filename == f"testcase.{fmt.value}"


def test_json_artifact_round_trips(login_case):
    artifact = ExportService().export_cases(ExportFormat.JSON, [login_case])
    assert artifact.media_type == "application/json"
    assert decode_cases(artifact.content) == [login_case]


def test_encoder_failure_raises_export_error(login_case):
    service = ExportService()
    service._encoders[ExportFormat.XLSX] = BrokenEncoder()

    with pytest.raises(ExportError) as exc_info:
        service.export_cases("xlsx", [login_case])
    assert exc_info.value.format == ExportFormat.XLSX
    assert "disk full" in str(exc_info.value)

    with pytest.raises(ExportError):
        service.export_groups("xlsx", [])


def test_unknown_format_is_rejected(login_case):
    with pytest.raises(ValueError):
        ExportService().export_cases("pdf", [login_case])


def test_save_artifact_writes_atomically(tmp_path, login_case):
    service = ExportService()
    artifact = service.export_cases("json", [login_case])

    path = service.save_artifact(artifact, tmp_path / "out")
    assert path == tmp_path / "out" / "testcases.json"
    assert path.read_bytes() == artifact.content
    assert list((tmp_path / "out" / ".tmp").iterdir()) == []

    artifact.content = b"[]"
    service.save_artifact(artifact, tmp_path / "out")
    assert path.read_bytes() == b"[]"
