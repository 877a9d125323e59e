"""Incremental build of a source tree into an output tree.

A build runs in four steps:

1. Load the site configuration and template set. Either failing aborts the
   build before anything is written.
2. Process every content unit on a thread pool: hash it, compare with the
   previous build cache, and render + write it only when stale. Workers share
   nothing mutable; each returns a ``UnitResult``.
3. After all workers finish, copy static assets and write tag pages from the
   page summaries, sorted so the output does not depend on completion order.
4. Commit a fresh cache built only from the units seen in this pass.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from sitegen.cache import (
    BuildCache,
    file_signature,
    is_stale,
    load_cache,
    save_cache,
    tree_signature,
)
from sitegen.config import SiteConfig, config_path, load_config
from sitegen.content import collect_markdown_files, load_unit, relative_key
from sitegen.errors import ConfigError, SiteGenError, TemplateSetError
from sitegen.log import get_logger
from sitegen.paths import TAG_TEMPLATE, TAGS_INDEX_TEMPLATE, TEMPLATES_DIRNAME
from sitegen.render import TemplateSet
from sitegen.routing import out_path_for, url_for_out_path
from sitegen.static import copy_static_assets, write_atomic
from sitegen.taxonomy import PageSummary, summary_sort_key, write_tag_pages

logger = get_logger("build")


@dataclass(frozen=True)
class UnitError:
    rel: str
    stage: str
    message: str


@dataclass
class BuildReport:
    built: int = 0
    skipped: int = 0
    errors: list[UnitError] = field(default_factory=list)
    fatal: str | None = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.fatal is None and not self.errors


@dataclass(frozen=True)
class UnitResult:
    rel: str
    signature: str | None = None
    summary: PageSummary | None = None
    built: bool = False
    error: UnitError | None = None


@dataclass(frozen=True)
class BuildContext:
    source_root: Path
    output_root: Path
    config: SiteConfig
    templates: TemplateSet
    previous: Mapping[str, str]
    templates_changed: bool


def config_signature(source_root: Path) -> str:
    path = config_path(source_root)
    try:
        return file_signature(path)
    except FileNotFoundError:
        return ""


def process_unit(ctx: BuildContext, path: Path) -> UnitResult:
    """Hash, check and (if stale) render one content file."""
    rel = relative_key(ctx.source_root, path)
    stage = "hash"
    try:
        signature = file_signature(path)
        stage = "load"
        unit = load_unit(ctx.source_root, path)
        out_path = out_path_for(ctx.output_root, unit)

        stale = is_stale(
            rel, signature, ctx.previous, templates_changed=ctx.templates_changed
        )
        if not stale and not out_path.is_file():
            stale = True

        if stale:
            stage = "render"
            html = ctx.templates.render_page(ctx.config, unit)
            stage = "write"
            write_atomic(out_path, html.encode("utf-8"))
            logger.debug("built %s -> %s", rel, out_path)
    except (OSError, ValueError, SiteGenError) as exc:
        logger.error("%s %s: %s", stage, rel, exc)
        return UnitResult(rel=rel, error=UnitError(rel, stage, str(exc)))
    except Exception as exc:
        # One unit must never take down the pool.
        logger.exception("%s %s: unexpected error", stage, rel)
        message = f"{type(exc).__name__}: {exc}"
        return UnitResult(rel=rel, error=UnitError(rel, stage, message))

    summary = PageSummary(
        title=unit.title,
        url=url_for_out_path(ctx.output_root, out_path),
        tags=unit.meta.tags,
    )
    return UnitResult(rel=rel, signature=signature, summary=summary, built=stale)


def run_units(
    ctx: BuildContext, paths: list[Path], workers: int | None = None
) -> list[UnitResult]:
    """Process every unit on a thread pool and wait for all of them."""
    if not paths:
        return []
    with ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="sitegen-build"
    ) as pool:
        futures = [pool.submit(process_unit, ctx, path) for path in paths]
        return [future.result() for future in as_completed(futures)]


def write_aggregates(
    ctx: BuildContext, summaries: list[PageSummary]
) -> None:
    """Copy static assets and write tag pages. Failures are logged only."""
    copied = copy_static_assets(ctx.source_root, ctx.output_root)
    if copied:
        logger.debug("copied %d static files", len(copied))

    if not (ctx.templates.has(TAG_TEMPLATE) and ctx.templates.has(TAGS_INDEX_TEMPLATE)):
        logger.debug(
            "no %s/%s templates; skipping tag pages", TAG_TEMPLATE, TAGS_INDEX_TEMPLATE
        )
        return
    try:
        write_tag_pages(ctx.templates, ctx.config, ctx.output_root, summaries)
    except (OSError, SiteGenError) as exc:
        logger.error("tags: %s", exc)
    except Exception:
        logger.exception("tags: unexpected error")


def build(
    source_root: Path | str,
    output_root: Path | str,
    *,
    workers: int | None = None,
) -> BuildReport:
    """Build ``source_root`` into ``output_root`` and report what happened."""
    started = time.perf_counter()
    source_root = Path(source_root)
    output_root = Path(output_root)
    templates_dir = source_root / TEMPLATES_DIRNAME

    try:
        config = load_config(source_root)
        templates = TemplateSet.load(templates_dir)
    except (ConfigError, TemplateSetError) as exc:
        logger.error("build aborted: %s", exc)
        return BuildReport(fatal=str(exc), duration=time.perf_counter() - started)

    paths = collect_markdown_files(source_root, exclude=output_root)

    previous = load_cache(output_root)
    templates_sig = tree_signature(templates_dir)
    config_sig = config_signature(source_root)
    templates_changed = (
        previous.templates_signature != templates_sig
        or previous.config_signature != config_sig
    )
    if templates_changed:
        logger.debug("templates or config changed; every page is stale")

    ctx = BuildContext(
        source_root=source_root,
        output_root=output_root,
        config=config,
        templates=templates,
        previous=MappingProxyType(dict(previous.per_unit_signatures)),
        templates_changed=templates_changed,
    )
    results = run_units(ctx, paths, workers)

    report = BuildReport()
    signatures: dict[str, str] = {}
    summaries: list[PageSummary] = []
    for result in results:
        if result.error is not None:
            report.errors.append(result.error)
            continue
        signatures[result.rel] = result.signature
        summaries.append(result.summary)
        if result.built:
            report.built += 1
        else:
            report.skipped += 1
    report.errors.sort(key=lambda error: error.rel)
    summaries.sort(key=summary_sort_key)

    write_aggregates(ctx, summaries)

    save_cache(
        output_root,
        BuildCache(
            templates_signature=templates_sig,
            per_unit_signatures=signatures,
            config_signature=config_sig,
        ),
    )

    report.duration = time.perf_counter() - started
    logger.info(
        "build done: %d built, %d skipped, %d failed",
        report.built,
        report.skipped,
        len(report.errors),
    )
    return report
