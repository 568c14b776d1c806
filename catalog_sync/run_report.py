"""
Per-run summary handed to the notification step.

A ``RunReport`` is created by the orchestrator, filled in as languages are
processed and returned (or attached to the failure) at the end of the run.
``build_notification_payload`` turns it into the flat, truncated text fields
consumed by the chat webhook workflow.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from catalog_sync.app_config import ReportSettings
from catalog_sync.catalog_store import CatalogStore
from catalog_sync.catalog_tree import CatalogPath
from catalog_sync.diff_engine import SourceChanges

logger = logging.getLogger(__name__)


class RunStatus(enum.Enum):
    SUCCESS = "success"
    NOTHING_TO_DO = "nothing_to_do"
    FAILURE = "failure"


STATUS_LABELS = {
    RunStatus.SUCCESS: "🟢 Passed - No issues in translation",
    RunStatus.NOTHING_TO_DO: "⚪️ No translations were needed",
    RunStatus.FAILURE: "🔴 Failed - Translation errors occurred",
}


def dotted(path: CatalogPath) -> str:
    return ".".join(path)


@dataclass
class SampleTranslation:
    key: str
    source: str
    translated: str


@dataclass
class LanguageReport:
    code: str
    name: str
    strings_translated: int = 0
    keys_deleted: int = 0
    translated_keys: List[str] = field(default_factory=list)
    deleted_keys: List[str] = field(default_factory=list)
    sample_translations: List[SampleTranslation] = field(default_factory=list)


@dataclass
class RunReport:
    commit_url: str = ""
    dry_run: bool = False
    languages: Dict[str, LanguageReport] = field(default_factory=dict)
    source_changes: SourceChanges = field(default_factory=SourceChanges)
    errors: List[str] = field(default_factory=list)

    def language(self, code: str, name: str) -> LanguageReport:
        """Return the entry for ``code``, creating it on first use."""
        if code not in self.languages:
            self.languages[code] = LanguageReport(code=code, name=name)
        return self.languages[code]

    def record_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def total_strings_translated(self) -> int:
        return sum(entry.strings_translated for entry in self.languages.values())

    @property
    def total_keys_deleted(self) -> int:
        return sum(entry.keys_deleted for entry in self.languages.values())

    @property
    def status(self) -> RunStatus:
        if self.errors:
            return RunStatus.FAILURE
        if self.total_strings_translated == 0 and self.total_keys_deleted == 0:
            return RunStatus.NOTHING_TO_DO
        return RunStatus.SUCCESS


def truncate_text(text: str, max_characters: int, suffix: str) -> str:
    """Cut ``text`` so that, with ``suffix`` appended, it fits in ``max_characters``."""
    if len(text) <= max_characters:
        return text
    keep = max(0, max_characters - len(suffix))
    return (text[:keep] + suffix)[:max_characters]


def _format_updated_keys(report: RunReport) -> str:
    if not report.languages:
        return "No languages were processed"
    return "\n\n".join(
        f"--- Processing {entry.name} ({entry.code}) ---\n"
        f"[SUMMARY] {entry.strings_translated} strings to translate ({entry.code}), "
        f"{entry.keys_deleted} keys to delete"
        for entry in report.languages.values()
    )


def _format_summary(report: RunReport) -> str:
    changes = report.source_changes
    if changes.has_changes:
        summary = (
            f"{len(changes.added)} strings added, {len(changes.modified)} modified, "
            f"{len(changes.removed)} keys deleted in English local file"
        )
    else:
        summary = "No changes detected in English local file"

    if report.status is RunStatus.FAILURE:
        summary += "\n\nErrors:\n" + "\n".join(f"- {error}" for error in report.errors)
    elif report.total_strings_translated > 0:
        summary += "\n\nAll strings were translated in all languages"
    else:
        summary += "\n\nNo translations were needed"

    if report.dry_run:
        summary += "\n\n(Dry run: no files were written)"
    return summary


def build_notification_payload(report: RunReport, settings: ReportSettings) -> Dict[str, str]:
    """
    Flatten a run report into the notification payload.

    Args:
        report: The finished (or aborted) run report.
        settings: Truncation limits and the language to sample.

    Returns:
        Dict[str, str]: ``url``, ``updatedKeys``, ``sampleTranslation``,
        ``status`` and ``summary``.
    """
    sample_entry = report.languages.get(settings.sample_language)
    sample_translation = ""
    if sample_entry and sample_entry.sample_translations:
        sample_translation = "\n\n".join(
            f"{sample.source}\n{sample.translated}" for sample in sample_entry.sample_translations
        )

    def fit(text: str) -> str:
        return truncate_text(text, settings.max_characters, settings.truncate_suffix)

    return {
        "url": report.commit_url,
        "updatedKeys": fit(_format_updated_keys(report)),
        "sampleTranslation": fit(sample_translation),
        "status": STATUS_LABELS[report.status],
        "summary": fit(_format_summary(report)),
    }


def write_notification_payload(report: RunReport, settings: ReportSettings, store: CatalogStore) -> None:
    """Write the payload for the notification step if reporting is enabled."""
    if not settings.enabled:
        return
    payload = build_notification_payload(report, settings)
    store.write_atomic(settings.output_file, payload)
    logger.info(f"Notification payload written to {settings.output_file}")
