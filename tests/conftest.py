from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Callable, Iterable
import subprocess
import sys

import pytest
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGES_ROOT = PROJECT_ROOT / "packages"
if str(PACKAGES_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGES_ROOT))

from intellideck.engine import EngineInfo, EngineInvoker, reset_probe_cache  # noqa: E402
from intellideck.pipeline import ConversionPipeline  # noqa: E402
from intellideck.workspace import WorkspaceManager  # noqa: E402

NAMESPACES = (
    'xmlns:office="urn:oasis:names:tc:opendocument:xmlns:office:1.0" '
    'xmlns:style="urn:oasis:names:tc:opendocument:xmlns:style:1.0" '
    'xmlns:text="urn:oasis:names:tc:opendocument:xmlns:text:1.0" '
    'xmlns:draw="urn:oasis:names:tc:opendocument:xmlns:drawing:1.0" '
    'xmlns:fo="urn:oasis:names:tc:opendocument:xmlns:xsl-fo-compatible:1.0" '
    'xmlns:xlink="http://www.w3.org/1999/xlink" '
    'xmlns:dc="http://purl.org/dc/elements/1.1/" '
    'xmlns:meta="urn:oasis:names:tc:opendocument:xmlns:meta:1.0" '
    'xmlns:presentation="urn:oasis:names:tc:opendocument:xmlns:presentation:1.0" '
    'xmlns:svg="urn:oasis:names:tc:opendocument:xmlns:svg-compatible:1.0" '
    'xmlns:loext="urn:org:documentfoundation:names:experimental:office:xmlns:loext:1.0"'
)


def flat_document(pages: str, *, meta: str = "", styles: str = "", root: str = "office:document") -> str:
    """Wrap *pages* in a minimal flat presentation document."""

    return (
        f'<?xml version="1.0" encoding="UTF-8"?>\n<{root} {NAMESPACES}>'
        f"<office:meta>{meta}</office:meta>"
        f"<office:styles>{styles}</office:styles>"
        f"<office:body><office:presentation>{pages}</office:presentation></office:body>"
        f"</{root}>"
    )


HELLO_FODP = flat_document(
    '<draw:page draw:name="Welcome">'
    '<draw:frame svg:x="10cm" svg:y="20cm" svg:width="100cm" svg:height="50cm">'
    "<draw:text-box><text:p>Hello</text:p></draw:text-box>"
    "</draw:frame>"
    "</draw:page>",
    meta="<dc:title>Greeting</dc:title>",
)


def pdf_bytes(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class FakeEngine:
    """Stand-in for the LibreOffice process, called like :func:`run_subprocess`."""

    def __init__(
        self,
        *,
        produce: bool = True,
        extension: str | None = None,
        only_filters: Iterable[str | None] | None = None,
        exit_code: int = 0,
        stderr: str = "",
        resources: Iterable[str] = (),
        payloads: dict[str, bytes] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.produce = produce
        self.extension = extension
        self.only_filters = set(only_filters) if only_filters is not None else None
        self.exit_code = exit_code
        self.stderr = stderr
        self.resources = tuple(resources)
        self.payloads = payloads or {}
        self.error = error
        self.calls: list[list[str]] = []
        self.timeouts: list[float | None] = []

    def __call__(self, command, *, env=None, timeout=None) -> subprocess.CompletedProcess[str]:
        command = list(command)
        self.calls.append(command)
        self.timeouts.append(timeout)
        if "--version" in command:
            return subprocess.CompletedProcess(command, 0, "LibreOffice 7.6.4.1\n", "")
        if self.error is not None:
            raise self.error
        if self.exit_code:
            return subprocess.CompletedProcess(command, self.exit_code, "", self.stderr)

        target = command[command.index("--convert-to") + 1]
        fmt, _, filter_name = target.partition(":")
        output_dir = Path(command[command.index("--outdir") + 1])
        source = Path(command[-1])
        allowed = self.only_filters is None or (filter_name or None) in self.only_filters
        if self.produce and allowed:
            extension = self.extension or fmt
            output = output_dir / f"{source.stem}.{extension}"
            output.write_bytes(self.payloads.get(fmt, source.read_bytes()))
            if fmt == "html" and self.resources:
                resource_dir = output_dir / f"{source.stem}_html_files"
                for name in self.resources:
                    resource = resource_dir / name
                    resource.parent.mkdir(parents=True, exist_ok=True)
                    resource.write_bytes(b"resource " + name.encode())
        return subprocess.CompletedProcess(command, 0, f"convert {source} -> {target}\n", self.stderr)

    @property
    def conversions(self) -> list[list[str]]:
        return [call for call in self.calls if "--convert-to" in call]


ENGINE = EngineInfo(binary="/usr/bin/soffice", version="LibreOffice 7.6.4.1")


@pytest.fixture(autouse=True)
def _clear_probe_cache() -> None:
    reset_probe_cache()
    yield
    reset_probe_cache()


@pytest.fixture()
def engine_info() -> EngineInfo:
    return ENGINE


@pytest.fixture()
def workspace_root(tmp_path: Path) -> Path:
    return tmp_path / "workspaces"


@pytest.fixture()
def pipeline_factory(workspace_root: Path) -> Callable[[FakeEngine], ConversionPipeline]:
    def _create(engine: FakeEngine) -> ConversionPipeline:
        invoker = EngineInvoker(runner=engine, engine=ENGINE)
        return ConversionPipeline(invoker=invoker, workspace_manager=WorkspaceManager(workspace_root))

    return _create


@pytest.fixture()
def sample_pptx(tmp_path: Path) -> Path:
    path = tmp_path / "deck.pptx"
    path.write_bytes(b"PK\x03\x04 not really a presentation")
    return path


@pytest.fixture()
def hello_fodp(tmp_path: Path) -> Path:
    path = tmp_path / "hello.fodp"
    path.write_text(HELLO_FODP, encoding="utf-8")
    return path
