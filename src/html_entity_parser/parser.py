"""Entity runner: extracts every configured entity from a document."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional, Union

from html_entity_parser.assembly import AssembledRow, RecordAssembler
from html_entity_parser.download import ResourceDownloader, fetch_html, resolve_url
from html_entity_parser.entities import EntityList
from html_entity_parser.exceptions import ConfigurationError, LinkFollowingError, RowProcessingError, TraversalError
from html_entity_parser.logger import get_module_logger
from html_entity_parser.matching.matcher import PathMatcher
from html_entity_parser.models import EntityModel
from html_entity_parser.processors import ProcessingContext
from html_entity_parser.results import EntityResult, ParserResults
from html_entity_parser.settings import ParserSettings
from html_entity_parser.tree import HtmlElement, parse_tree

logger = get_module_logger("parser")

DEFAULT_DOWNLOAD_DIRECTORY = Path("downloads")


class HtmlParser:
    """
    Runs the entities of an :class:`EntityList` over HTML documents.

    Each entity is extracted on its own worker thread with its own matcher
    and assembler; the element tree is shared read-only. Results come back
    in entity declaration order.
    """

    def __init__(self, entity_list: EntityList, settings: Optional[ParserSettings] = None):
        self.entity_list = entity_list
        self.settings = settings or ParserSettings()
        self._stop = threading.Event()

    def stop(self) -> None:
        """Ask running extractions to stop; rows assembled so far are still returned."""
        self._stop.set()

    def parse(self, html: str, base_url: Optional[str] = None) -> ParserResults:
        return self.parse_tree(parse_tree(html), base_url)

    def parse_file(self, path: Union[str, Path], encoding: str = "utf-8") -> ParserResults:
        path = Path(path)
        return self.parse(path.read_text(encoding=encoding), base_url=path.resolve().as_uri())

    def parse_url(self, url: str) -> ParserResults:
        html = fetch_html(url, timeout=self.settings.request_timeout)
        return self.parse(html, base_url=url)

    def parse_tree(self, root: HtmlElement, base_url: Optional[str] = None) -> ParserResults:
        self._stop.clear()
        models = self._models()
        results = ParserResults()
        if not models:
            return results

        workers = max(1, min(self.settings.thread_count, len(models)))
        logger.info("Extracting %d entities with %d worker(s)", len(models), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="entity") as executor:
            futures = [executor.submit(self._run_entity, model, root, base_url) for model in models]
            for model, future in zip(models, futures):
                results[model.name] = future.result()
        return results

    def _models(self) -> list[EntityModel]:
        unknown = [n for n in self.settings.entities_to_read + self.settings.entities_to_skip if n not in self.entity_list]
        if unknown:
            raise ConfigurationError(f"Unknown entities: {', '.join(unknown)}", {"known": self.entity_list.names})
        return [entity.build() for entity in self.entity_list if self.settings.should_read(entity.name)]

    # --- per entity ---

    def _run_entity(self, model: EntityModel, root: HtmlElement, base_url: Optional[str]) -> EntityResult:
        settings = self.settings
        listener = settings.listener
        if listener is not None:
            listener.parsing_started(model.name)

        assembler = RecordAssembler(
            model,
            null_value=settings.null_value,
            empty_value=settings.empty_value,
            trim_values=settings.trim_values,
            downloader=self._downloader(model, base_url),
            error_handler=settings.error_handler,
        )
        matcher = PathMatcher(model, stop_event=self._stop, listener=listener)

        error = None
        try:
            for event in matcher.events(root):
                assembler.handle(event)
            assembled = assembler.finish()
        except TraversalError as e:
            logger.error("Aborted entity %s: %s", model.name, e.message)
            error = e.message
            assembled = assembler.rows

        headers, positions = self._columns(model)
        result = EntityResult(
            entity_name=model.name,
            headers=headers,
            rows=[self._shape(row, positions) for row in assembled],
            error=error,
        )
        self._follow_links(result, assembled, assembler, base_url)
        self._run_processor(result, assembler, base_url)

        if listener is not None:
            listener.parsing_ended(model.name)
        logger.info("Entity %s: %d rows", model.name, len(result.rows))
        return result

    def _downloader(self, model: EntityModel, base_url: Optional[str]):
        if self.settings.download_handler is not None:
            return self.settings.download_handler
        if not any(path.download for f in model.fields for path in f.paths):
            return None
        return ResourceDownloader(
            self.settings.download_directory or DEFAULT_DOWNLOAD_DIRECTORY,
            base_url=base_url,
            timeout=self.settings.request_timeout,
        )

    def _columns(self, model: EntityModel) -> tuple[list[str], list[Optional[int]]]:
        names = model.field_names
        selected = self.settings.selected_fields.get(model.name)
        excluded = self.settings.excluded_fields.get(model.name)
        requested = selected if selected is not None else excluded
        if requested is None:
            return names, list(range(len(names)))

        unknown = [n for n in requested if n not in names]
        if unknown:
            raise ConfigurationError(
                f"Entity '{model.name}' has no field(s) {', '.join(unknown)}",
                {"entity": model.name, "fields": names},
            )
        chosen = list(selected) if selected is not None else [n for n in names if n not in excluded]
        if self.settings.column_reordering_enabled:
            return chosen, [names.index(n) for n in chosen]
        return names, [i if name in chosen else None for i, name in enumerate(names)]

    def _shape(self, row: AssembledRow, positions: list[Optional[int]]) -> list[Any]:
        return [row.values[i] if i is not None else self.settings.null_value for i in positions]

    def _follow_links(
        self,
        result: EntityResult,
        assembled: list[AssembledRow],
        assembler: RecordAssembler,
        base_url: Optional[str],
    ) -> None:
        for index, row in enumerate(assembled):
            for link in row.links:
                if self._stop.is_set():
                    return
                url = resolve_url(link.url, base_url)
                try:
                    linked = link.follower.follow(url, self.settings)
                except Exception as e:
                    assembler.report(
                        LinkFollowingError(
                            f"Following link {url} of field '{link.field_name}' failed: {e}",
                            entity_name=result.entity_name,
                            field_name=link.field_name,
                            row=result.rows[index],
                            cause=e,
                            details={"url": url},
                        )
                    )
                    continue
                result.linked.setdefault(index, type(linked)()).update(linked)

    def _run_processor(self, result: EntityResult, assembler: RecordAssembler, base_url: Optional[str]) -> None:
        processor = self.settings.processors.get(result.entity_name)
        if processor is None:
            return
        headers = tuple(result.headers)
        processor.process_started(ProcessingContext(result.entity_name, headers, source=base_url))
        for index, row in enumerate(result.rows):
            try:
                processor.row_processed(row, ProcessingContext(result.entity_name, headers, index, base_url))
            except Exception as e:
                assembler.report(
                    RowProcessingError(
                        f"Row processor failed on row {index}: {e}",
                        entity_name=result.entity_name,
                        row=row,
                        cause=e,
                    )
                )
        processor.process_ended(ProcessingContext(result.entity_name, headers, source=base_url))
