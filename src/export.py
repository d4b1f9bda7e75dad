"""Export run: map every raw Jira item and write the resulting work items."""

from collections.abc import Iterable
from pathlib import Path

from config.schemas.export_config import ExportConfig
from src import config
from src.clients.provider import JiraProvider
from src.display import ExportProgress
from src.mappings.jira_mapper import JiraMapper
from src.mappings.user_mapping import UserMapping
from src.models.export_result import ExportResult
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import JiraItem
from src.utils import data_handler
from src.utils.item_provider import WiItemProvider
from src.utils.lexo_rank import LexoRankDecoder

logger = config.logger

SUMMARY_FILE = "export_summary.json"


class ExportRun:
    """One export of a set of raw items into ``output_dir``.

    Items whose output file already exists are skipped unless ``force`` is
    set. An item that fails to map is counted and reported, the run goes on.
    """

    def __init__(
        self,
        export_config: ExportConfig,
        provider: JiraProvider,
        output_dir: Path | str,
        summary: ExportIssuesSummary | None = None,
        rank_decoder: LexoRankDecoder | None = None,
        user_mapping: UserMapping | None = None,
        *,
        force: bool = False,
        results_dir: Path | str | None = None,
    ) -> None:
        self.export_config = export_config
        self.summary = summary if summary is not None else ExportIssuesSummary()
        self.items = WiItemProvider(output_dir)
        self.force = force
        self.results_dir = results_dir
        self.mapper = JiraMapper(
            provider,
            export_config,
            summary=self.summary,
            rank_decoder=rank_decoder,
            user_mapping=user_mapping,
        )

    def run(self, items: Iterable[JiraItem], total: int | None = None) -> ExportResult:
        items = list(items) if total is None else items
        total = len(items) if total is None else total
        result = ExportResult(total_count=total)

        logger.info("Exporting %d Jira items to %s", total, self.items.items_dir)
        with ExportProgress(total) as progress:
            for item in items:
                progress.record(item.key, self._export_item(item, result))

        result.success = result.failed_count == 0
        result.message = (
            f"Exported {result.exported_count} of {result.total_count} items "
            f"({result.skipped_count} skipped, {result.unmapped_count} unmapped, "
            f"{result.failed_count} failed)"
        )
        result["summary"] = self.summary.model_dump(mode="json")
        data_handler.save_results(self.summary, SUMMARY_FILE, self.results_dir)

        if result.success:
            logger.success(result.message)
        else:
            logger.error(result.message)
        return result

    def _export_item(self, item: JiraItem, result: ExportResult) -> str:
        """Export one item and return its outcome."""
        if not self.force and self.items.exists(item.key):
            logger.debug("Skipping %s, already exported", item.key)
            result.skipped_count += 1
            return "skipped"

        try:
            wi_item = self.mapper.map(item)
            if wi_item is None:
                result.unmapped_count += 1
                return "unmapped"
            self.items.save(wi_item)
        except Exception as e:  # noqa: BLE001
            logger.exception("Failed to export %s", item.key)
            result.failed_count += 1
            result.add_error(f"{item.key}: {e}")
            return "failed"

        result.exported_count += 1
        return "exported"
