"""Static export of generated pages."""

import logging
from collections.abc import Mapping
from pathlib import Path

from spacetraveling.engine.generation import GeneratedPage

logger = logging.getLogger(__name__)


class StaticSiteSink:
    """Writes generated pages as ``index.html`` files under an output directory.

    ``/`` becomes ``index.html`` and ``/post/<uid>`` becomes
    ``post/<uid>/index.html``. A ``404.html`` holds the not-found page.
    """

    def __init__(self, output_dir: Path) -> None:
        """Initialize the static site sink.

        Args:
            output_dir: Directory where HTML files will be written

        """
        self.output_dir = Path(output_dir)

    def publish(self, pages: Mapping[str, GeneratedPage], not_found_html: str | None = None) -> list[Path]:
        """Write every page, creating directories as needed.

        Returns:
            The files written, in page order.

        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        written = [self._write_page(page) for page in pages.values()]

        if not_found_html is not None:
            not_found_file = self.output_dir / "404.html"
            not_found_file.write_text(not_found_html, encoding="utf-8")
            written.append(not_found_file)

        logger.info("Wrote %d files to %s", len(written), self.output_dir)
        return written

    def file_for(self, path: str) -> Path:
        """Map a page path to its file inside the output directory."""
        parts = [part for part in path.strip("/").split("/") if part]
        if any(part in (".", "..") for part in parts):
            msg = f"Refusing to write outside the output directory: {path}"
            raise ValueError(msg)
        return self.output_dir.joinpath(*parts, "index.html")

    def _write_page(self, page: GeneratedPage) -> Path:
        output_file = self.file_for(page.path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(page.html, encoding="utf-8")
        return output_file
