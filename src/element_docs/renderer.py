"""Render a resolved model into a static HTML documentation tree.

Layout of the generated site (relative to the output directory)::

    index.html, stylesheet.css                copied static assets
    overview-frame.html                        every namespace
    overview-summary.html                      every element + namespace
    allclasses-frame.html                      elements with ancestors
    <ns/path>/<ns_stem>-pkg.html               package listing per namespace
    <ns/path>/<ns_stem>-info.html              namespace description
    <ns/path>/<ElementName>.html               one page per element

Every template receives ``meta_data`` (project info), the ``make_html`` and
``make_summary_html`` Markdown helpers, ``attachment`` (the page's relative
path), ``root`` (relative prefix back to the output directory), ``link_for``
and ``drupal_vars`` (``export_time``, ``export_version``, ``id_for``).

Example:
    from pathlib import Path
    from element_docs.loader import load_model_file
    from element_docs.renderer import PageBuilder

    model = load_model_file(Path("cimcore.json"))
    written = PageBuilder(model, Path("site")).generate_html()
    print(len(written), "pages")
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

import markdown
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .config import BuildConfig
from .errors import ModelError
from .loader import CompiledModel

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
REQUIRED_DIR = Path(__file__).resolve().parent / "required"

_BARE_URL = re.compile(r"(?<![\w/<(\[\"'=;])(https?://[^\s<>()\[\]&]+)")


def _escape_angles(md: str) -> str:
    return md.replace("<", "&lt;").replace(">", "&gt;")


def make_html(md: Optional[str], autolink: bool = True) -> str:
    """Convert a Markdown description to HTML.

    Angle brackets are escaped first so raw HTML in the model is shown as
    text. With ``autolink`` bare URLs become links.
    """
    if md is None:
        return ""
    text = _escape_angles(md)
    if autolink:
        text = _BARE_URL.sub(r"<\1>", text)
    return markdown.markdown(text, output_format="html5")


def make_summary_html(md: Optional[str]) -> str:
    """HTML for the first paragraph of a description (listing pages)."""
    if md is None:
        return ""
    first = md.strip().split("\n\n", 1)[0]
    return make_html(first, autolink=False)


def id_for(value: str) -> int:
    """Stable 32-bit numeric id for ``value`` (same input, same id)."""
    return int(hashlib.md5(value.encode("utf-8")).hexdigest()[:8], 16)


def _root_prefix(attachment: str) -> str:
    depth = len(PurePosixPath(attachment).parent.parts)
    return "../" * depth


class PageBuilder:
    """Write every documentation page for a resolved :class:`CompiledModel`.

    Args:
        model: A model returned by :func:`~element_docs.loader.compile_model`.
        out_directory: Root directory for generated pages.
        config: Build options; defaults to :class:`BuildConfig`.
        logger: Logger for progress and rendering errors.

    Raises:
        ModelError: If ``model`` has not been resolved.
    """

    def __init__(
        self,
        model: CompiledModel,
        out_directory: Path,
        config: Optional[BuildConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not model.resolved:
            raise ModelError("Model must be resolved before generating pages")
        self.model = model
        self.out_directory = Path(out_directory)
        self.config = config or BuildConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.written: List[Path] = []

    # ---------------- Helpers ---------------- #

    def _make_html(self, md: Optional[str]) -> str:
        return make_html(md, autolink=self.config.autolink)

    def link_for(self, fqn: str) -> Optional[str]:
        """Path of the element page for ``fqn`` relative to the output root."""
        element = self.model.elements.get(fqn)
        if element is None:
            return None
        return f"{element.namespace_path}/{element.name}.html"

    def render_page(self, template: str, context: Dict[str, Any], file_path: str) -> Path:
        """Render ``template`` with ``context`` into ``file_path``.

        Rendering errors are logged and re-raised.

        Raises:
            ModelError: If ``file_path`` resolves outside the output directory.
        """
        destination = self.out_directory / file_path
        root = self.out_directory.resolve()
        if root not in destination.resolve().parents:
            raise ModelError(f"Page path {file_path!r} escapes output directory {self.out_directory}")
        page_context = dict(context)
        page_context.update(
            meta_data=self.model.project_info,
            make_html=self._make_html,
            make_summary_html=make_summary_html,
            attachment=file_path,
            root=_root_prefix(file_path),
            link_for=self.link_for,
            drupal_vars={
                "export_time": self.model.export_time,
                "export_version": self.model.export_version,
                "id_for": id_for,
            },
        )
        try:
            html_text = self.env.get_template(template).render(**page_context)
        except TemplateError as e:
            self.logger.error("Error rendering model doc %s: %s", file_path, e)
            raise
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(html_text, encoding="utf-8")
        self.written.append(destination)
        return destination

    # ---------------- Build steps ---------------- #

    def build_output_directory(self) -> None:
        self.out_directory.mkdir(parents=True, exist_ok=True)
        for namespace in self.model.namespaces.list():
            (self.out_directory / namespace.path).mkdir(parents=True, exist_ok=True)

    def copy_required_files(self) -> None:
        """Copy bundled static files (index page, stylesheet)."""
        shutil.copytree(REQUIRED_DIR, self.out_directory, dirs_exist_ok=True)

    def build_package_files(self) -> None:
        for namespace in self.model.namespaces.list():
            file_path = f"{namespace.path}/{namespace.file_stem}-pkg.html"
            self.render_page(
                "pkg.html",
                {"elements": namespace.sorted_elements(), "namespace": namespace},
                file_path,
            )

    def build_info_files(self) -> None:
        for namespace in self.model.namespaces.list():
            file_path = f"{namespace.path}/{namespace.file_stem}-info.html"
            self.render_page("info.html", {"namespace": namespace}, file_path)

    def build_overview_frame(self) -> None:
        self.render_page(
            "overview-frame.html",
            {"namespaces": self.model.namespaces.list()},
            "overview-frame.html",
        )

    def build_overview_summary(self) -> None:
        self.render_page(
            "overview-summary.html",
            {
                "elements": self.model.elements.list(),
                "namespaces": self.model.namespaces.list(),
            },
            "overview-summary.html",
        )

    def build_all_elements_frame(self) -> None:
        self.render_page(
            "allclasses-frame.html",
            {"elements": self.model.elements.with_hierarchy()},
            "allclasses-frame.html",
        )

    def build_data_elements(self) -> None:
        elements = self.model.elements.list()
        self.logger.info("Building documentation pages for %s elements...", len(elements))
        for element in elements:
            file_path = f"{element.namespace_path}/{element.name}.html"
            self.render_page(
                "data_element.html",
                {
                    "element": element,
                    "data_elements": self.model.elements,
                    "children": self.model.elements.children_of(element.fqn),
                },
                file_path,
            )

    def generate_html(self) -> List[Path]:
        """Run every build step and return the written page paths."""
        self.build_output_directory()
        if self.config.copy_assets:
            self.copy_required_files()
        self.build_package_files()
        self.build_info_files()
        self.build_overview_frame()
        self.build_overview_summary()
        self.build_all_elements_frame()
        self.build_data_elements()
        return list(self.written)


def export_to_path(
    model: CompiledModel,
    out_directory: Path,
    config: Optional[BuildConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """Convenience wrapper: build every page of ``model`` into ``out_directory``."""
    return PageBuilder(model, out_directory, config=config, logger=logger).generate_html()
