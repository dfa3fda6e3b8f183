from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from zipfile import ZipFile

import pytest
from pypdf import PdfReader

from conftest import FakeEngine, pdf_bytes
from intellideck.exceptions import (
    ConversionError,
    EngineInvocationFailed,
    InvalidInputError,
    OutputGenerationError,
    OutputMissingError,
    UnsupportedFormatError,
)
from intellideck.pipeline import ConversionOptions, PipelineState


def _leftovers(root: Path) -> list[Path]:
    return list(root.iterdir()) if root.exists() else []


def test_pdf_conversion(pipeline_factory, sample_pptx: Path, tmp_path: Path, workspace_root: Path) -> None:
    engine = FakeEngine(payloads={"pdf": pdf_bytes(2)})
    pipeline = pipeline_factory(engine)
    out_dir = tmp_path / "out"

    result = pipeline.run(sample_pptx, "pdf", ConversionOptions(output_dir=out_dir, validate_output=True))

    assert result.output_path == out_dir / "deck.pdf"
    assert len(PdfReader(str(result.output_path)).pages) == 2
    assert result.format == "pdf"
    assert result.workspace is None
    assert result.conversion_info.engine_version == "LibreOffice 7.6.4.1"
    assert result.conversion_info.duration_ms >= 0
    assert _leftovers(workspace_root) == []
    assert sorted(path.name for path in out_dir.iterdir()) == ["deck.pdf"]
    assert pipeline.history == [
        PipelineState.VALIDATING,
        PipelineState.WORKSPACE_PREPARED,
        PipelineState.ENGINE_INVOKED,
        PipelineState.POST_PROCESSED,
        PipelineState.CLEANED_UP,
        PipelineState.COMPLETED,
    ]


def test_engine_receives_canonical_input_name(pipeline_factory, tmp_path: Path) -> None:
    source = tmp_path / "Quarterly Review (v2).pptx"
    source.write_bytes(b"deck")
    engine = FakeEngine()

    result = pipeline_factory(engine).run(source, "fodp", ConversionOptions(output_dir=tmp_path / "out"))

    assert Path(engine.conversions[0][-1]).name == "input.pptx"
    assert result.output_path.name == "Quarterly Review (v2).fodp"


def test_output_name_option(pipeline_factory, sample_pptx: Path, tmp_path: Path) -> None:
    result = pipeline_factory(FakeEngine()).run(
        sample_pptx, "pptx", ConversionOptions(output_dir=tmp_path / "out", output_name="renamed")
    )

    assert result.output_path == tmp_path / "out" / "renamed.pptx"


def test_html_is_zipped_with_resources(pipeline_factory, sample_pptx: Path, tmp_path: Path, workspace_root: Path) -> None:
    engine = FakeEngine(resources=("img0.png", "img1.png"), payloads={"html": b"<html></html>"})

    result = pipeline_factory(engine).run(sample_pptx, "html", ConversionOptions(output_dir=tmp_path / "out"))

    assert result.output_path == tmp_path / "out" / "deck.zip"
    assert result.additional_files == ["img0.png", "img1.png"]
    with ZipFile(result.output_path) as archive:
        assert sorted(archive.namelist()) == ["html_files/img0.png", "html_files/img1.png", "input.html"]
    assert _leftovers(workspace_root) == []


def test_html_without_zip(pipeline_factory, sample_pptx: Path, tmp_path: Path) -> None:
    engine = FakeEngine(resources=("img0.png",), payloads={"html": b"<html></html>"})

    result = pipeline_factory(engine).run(
        sample_pptx, "html", ConversionOptions(output_dir=tmp_path / "out", create_zip=False)
    )

    assert result.output_path == tmp_path / "out" / "deck.html"
    assert result.output_path.read_bytes() == b"<html></html>"
    assert result.additional_files == ["img0.png"]
    assert (tmp_path / "out" / "deck_html_files" / "img0.png").read_bytes() == b"resource img0.png"


def test_html_without_zip_and_without_resources(pipeline_factory, sample_pptx: Path, tmp_path: Path) -> None:
    engine = FakeEngine(payloads={"html": b"<html></html>"})

    result = pipeline_factory(engine).run(
        sample_pptx, "html", ConversionOptions(output_dir=tmp_path / "out", create_zip=False, output_name="site")
    )

    assert result.output_path == tmp_path / "out" / "site.html"
    assert result.additional_files == []
    assert not (tmp_path / "out" / "site_html_files").exists()


def test_missing_html_output_cleans_up(pipeline_factory, sample_pptx: Path, tmp_path: Path, workspace_root: Path) -> None:
    engine = FakeEngine(produce=False)
    pipeline = pipeline_factory(engine)
    out_dir = tmp_path / "out"

    with pytest.raises(OutputMissingError):
        pipeline.run(sample_pptx, "html", ConversionOptions(output_dir=out_dir))

    assert len(engine.conversions) == 2
    assert _leftovers(workspace_root) == []
    assert not out_dir.exists()
    assert pipeline.history[-1] is PipelineState.FAILED


def test_failure_keeps_workspace_when_requested(pipeline_factory, sample_pptx: Path, workspace_root: Path) -> None:
    pipeline = pipeline_factory(FakeEngine(exit_code=1, stderr="boom"))

    with pytest.raises(EngineInvocationFailed):
        pipeline.run(sample_pptx, "pdf", ConversionOptions(keep_temp_files=True))

    kept = _leftovers(workspace_root)
    assert len(kept) == 1
    assert (kept[0] / "input.pptx").is_file()


def test_engine_failure_removes_workspace(pipeline_factory, sample_pptx: Path, workspace_root: Path) -> None:
    pipeline = pipeline_factory(FakeEngine(exit_code=3))

    with pytest.raises(EngineInvocationFailed) as excinfo:
        pipeline.run(sample_pptx, "pdf")

    assert excinfo.value.exit_code == 3
    assert _leftovers(workspace_root) == []


def test_keep_temp_files_returns_workspace(pipeline_factory, sample_pptx: Path, tmp_path: Path) -> None:
    result = pipeline_factory(FakeEngine()).run(
        sample_pptx, "fodp", ConversionOptions(output_dir=tmp_path / "out", keep_temp_files=True)
    )

    assert result.workspace is not None
    assert (result.workspace / "output" / "input.fodp").is_file()


def test_invalid_pdf_is_not_published(pipeline_factory, sample_pptx: Path, tmp_path: Path, workspace_root: Path) -> None:
    engine = FakeEngine(payloads={"pdf": b"%PDF-garbage"})
    out_dir = tmp_path / "out"

    with pytest.raises(OutputGenerationError):
        pipeline_factory(engine).run(sample_pptx, "pdf", ConversionOptions(output_dir=out_dir, validate_output=True))

    assert list(out_dir.iterdir()) == []
    assert _leftovers(workspace_root) == []


def test_missing_input(pipeline_factory, tmp_path: Path, workspace_root: Path) -> None:
    engine = FakeEngine()
    pipeline = pipeline_factory(engine)

    with pytest.raises(InvalidInputError):
        pipeline.run(tmp_path / "absent.pptx", "pdf")

    assert engine.calls == []
    assert _leftovers(workspace_root) == []
    assert pipeline.history == [PipelineState.VALIDATING, PipelineState.FAILED]


def test_empty_input(pipeline_factory, tmp_path: Path) -> None:
    empty = tmp_path / "empty.pptx"
    empty.write_bytes(b"")

    with pytest.raises(InvalidInputError):
        pipeline_factory(FakeEngine()).run(empty, "pdf")


def test_unsupported_target(pipeline_factory, sample_pptx: Path) -> None:
    with pytest.raises(UnsupportedFormatError):
        pipeline_factory(FakeEngine()).run(sample_pptx, "docx")


def test_unexpected_error_is_wrapped(pipeline_factory, sample_pptx: Path, workspace_root: Path) -> None:
    pipeline = pipeline_factory(FakeEngine(error=ValueError("unexpected")))

    with pytest.raises(ConversionError):
        pipeline.run(sample_pptx, "pdf")

    assert _leftovers(workspace_root) == []


def test_concurrent_runs_use_separate_workspaces(pipeline_factory, tmp_path: Path, workspace_root: Path) -> None:
    engine = FakeEngine()
    pipeline = pipeline_factory(engine)
    sources = []
    for index in range(4):
        source = tmp_path / f"deck{index}.pptx"
        source.write_bytes(f"deck {index}".encode())
        sources.append(source)

    def convert(source: Path):
        return pipeline.run(source, "pptx", ConversionOptions(output_dir=tmp_path / "out"))

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(convert, sources))

    workspaces = {Path(call[-1]).parent for call in engine.conversions}
    assert len(workspaces) == 4
    for index, result in enumerate(results):
        assert result.output_path.read_bytes() == f"deck {index}".encode()
    assert _leftovers(workspace_root) == []
