"""
Orchestrates a synchronization run.

- fetch the live source catalog, read the previously synced one
- per language: diff, translate via array-in/out, validate, apply
- all-or-nothing: catalogs are written only after every language succeeded,
  and the previous source is advanced only on full (unfiltered) runs
"""
import argparse
import asyncio
import copy
import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional

from catalog_sync.app_config import AppConfig, TargetLanguage, load_app_config
from catalog_sync.catalog_store import CatalogStore
from catalog_sync.catalog_tree import Catalog, delete_at_path, set_at_path
from catalog_sync.diff_engine import diff_keys, diff_source_changes
from catalog_sync.errors import CatalogSyncError, ConfigError
from catalog_sync.run_report import RunReport, SampleTranslation, dotted, write_notification_payload
from catalog_sync.source_fetch import SourceFetcher
from catalog_sync.translation_driver import (
    OpenAIBackend,
    TranslationBackend,
    TranslationSettings,
    translate_values
)

logger = logging.getLogger(__name__)


@dataclass
class ProposedWrite:
    """A fully computed catalog waiting for the commit phase."""
    language_code: str
    identifier: str
    document: Catalog


def resolve_languages(config: AppConfig, language_code: Optional[str]) -> List[TargetLanguage]:
    """
    Select the languages to process.

    Args:
        config: The application configuration.
        language_code: Restrict the run to this language, or None for all.

    Returns:
        List[TargetLanguage]: The languages in configuration order.

    Raises:
        ConfigError: If ``language_code`` is not a configured target language.
    """
    if not language_code:
        return list(config.target_languages)
    selected = [language for language in config.target_languages if language.code == language_code]
    if not selected:
        available = ", ".join(language.code for language in config.target_languages)
        raise ConfigError(f"Language code '{language_code}' not found. Available languages: {available}")
    return selected


async def process_language(
        language: TargetLanguage,
        live_source: Catalog,
        previous_source: Catalog,
        store: CatalogStore,
        backend: TranslationBackend,
        settings: TranslationSettings,
        report: RunReport,
        sample_language: str
) -> ProposedWrite:
    """
    Compute the updated catalog for one language without writing it.

    Returns:
        ProposedWrite: The target identifier and its new content.
    """
    logger.info(f"--- Processing {language.name} ({language.code}) ---")

    target_path = store.catalog_path(language.code)
    target = store.read(target_path)

    diff = diff_keys(live_source, previous_source, target)
    logger.info(
        f"[SUMMARY] {len(diff.to_translate_values)} strings to translate ({language.code}), "
        f"{len(diff.deleted)} keys to delete"
    )

    entry = report.language(language.code, language.name)
    entry.strings_translated = len(diff.to_translate_values)
    entry.keys_deleted = len(diff.deleted)
    entry.translated_keys = [dotted(path) for path in diff.to_translate_paths]
    entry.deleted_keys = [dotted(path) for path in diff.deleted]

    translated_values: List[str] = []
    if diff.to_translate_values:
        translated_values = await translate_values(
            diff.to_translate_values, language, live_source, target, backend, settings
        )

    updated = copy.deepcopy(target)
    for path in diff.deleted:
        delete_at_path(updated, path)
    for path, value in zip(diff.to_translate_paths, translated_values):
        set_at_path(updated, path, value)

    if language.code == sample_language:
        entry.sample_translations = [
            SampleTranslation(key=dotted(path), source=source, translated=translated)
            for path, source, translated in zip(diff.to_translate_paths, diff.to_translate_values, translated_values)
        ]

    return ProposedWrite(language_code=language.code, identifier=target_path, document=updated)


def commit_proposed_writes(proposed: List[ProposedWrite], store: CatalogStore) -> None:
    for write in proposed:
        store.write_atomic(write.identifier, write.document)
        logger.info(f"Wrote {write.language_code}/{os.path.basename(write.identifier)}")


async def run(
        config: AppConfig,
        language_code: Optional[str] = None,
        *,
        backend: Optional[TranslationBackend] = None,
        fetcher: Optional[SourceFetcher] = None,
        store: Optional[CatalogStore] = None,
        report: Optional[RunReport] = None
) -> RunReport:
    """
    Run one synchronization pass.

    Args:
        config: The application configuration.
        language_code: Process only this language. Falls back to
            ``config.language_filter``; when neither is set every configured
            language is processed and the previous source is advanced.
        backend: Translation backend; defaults to OpenAI.
        fetcher: Live source fetcher; defaults to HTTP.
        store: Catalog persistence; defaults to ``config.locales_dir``.
        report: Report to fill in; a new one is created if omitted.

    Returns:
        RunReport: Counts, samples and status of the run.

    Raises:
        ConfigError: Unknown language code. Raised before any I/O.
        CatalogSyncError: Any failure during processing. Nothing is written.
    """
    language_code = language_code or config.language_filter
    languages = resolve_languages(config, language_code)

    store = store or CatalogStore(config.locales_dir, config.namespace)
    fetcher = fetcher or SourceFetcher(timeout=config.request_timeout)
    backend = backend or OpenAIBackend.from_config(config)
    report = report or RunReport(commit_url=config.report.commit_url, dry_run=config.dry_run)
    settings = TranslationSettings.from_config(config)

    logger.info("Starting translation workflow...")
    committing = False
    try:
        live_source = await fetcher.fetch(config.live_source_url)
        previous_source_path = store.catalog_path(config.source_language)
        previous_source = store.read(previous_source_path)

        report.source_changes = diff_source_changes(live_source, previous_source)

        proposed: List[ProposedWrite] = []
        for language in languages:
            proposed.append(await process_language(
                language, live_source, previous_source, store, backend, settings,
                report, config.report.sample_language
            ))

        if config.dry_run:
            logger.info(f"[DRY_RUN] {len(languages)} language(s) processed successfully. No files written.")
        else:
            committing = True
            commit_proposed_writes(proposed, store)
            # A filtered run must not advance the shared baseline: the other
            # languages have not been diffed against it yet.
            if not language_code:
                store.write_atomic(previous_source_path, live_source)
                logger.info(f"Synced local {config.source_language} to {config.live_source_url}")
    except Exception as exc:
        if committing:
            logger.error("Aborting: writing catalogs failed. Files already replaced keep their new content.")
        else:
            logger.error("Aborting: a failure occurred. No files were written.")
        logger.error(f"{exc.__class__.__name__}: {exc}")
        report.record_error(str(exc))
        try:
            write_notification_payload(report, config.report, store)
        except OSError:
            logger.exception("Failed to write notification payload")
        raise

    logger.info("Translation workflow finished successfully.")
    write_notification_payload(report, config.report, store)
    return report


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Returns:
        int: The process exit code.
    """
    parser = argparse.ArgumentParser(
        description="Translate new and changed source strings into every configured locale."
    )
    parser.add_argument(
        "language_code", nargs="?", default=None,
        help="Only process this language. The previously synced source is not advanced."
    )
    args = parser.parse_args(argv)

    try:
        config = load_app_config()
        report = asyncio.run(run(config, args.language_code))
    except ConfigError as config_exc:
        logger.error(f"Configuration error: {config_exc}")
        print(f"Configuration error: {config_exc}", file=sys.stderr)
        return 1
    except CatalogSyncError:
        return 1
    except Exception:
        logger.exception("An unexpected error occurred during execution")
        return 1

    logger.info(f"Run status: {report.status.value}")
    return 0


def cli() -> None:
    sys.exit(main())
