"""Import pipeline: scan, transform, rename, resolve, submit, sleep, repeat.

Each video file found in the downloads folder is handled independently; a
failure on one file is recorded in the report and the run moves on to the
next file. Only configuration and downloads-folder errors abort a run.

Files that resolve to a series (through a mapping rule or auto-match) and
carry a parsable episode reference are submitted as a ManualImport with the
episode ids, quality and language filled in. Everything else is submitted
as a DownloadedEpisodesScan of the file's remote path, leaving the parsing
to Sonarr.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from sonarrimport.core.episode_parser import parse_release
from sonarrimport.core.paths import translate_path, trim_folder
from sonarrimport.core.resolver import MappingStore, SeriesResolver
from sonarrimport.core.scanner import scan_downloads
from sonarrimport.core.transforms import apply_transforms, rename_file
from sonarrimport.models.config import SonarrSettings
from sonarrimport.models.core import (
    EpisodeReference,
    ImportItem,
    ImportReport,
    ImportStatus,
    ReleaseInfo,
)
from sonarrimport.sonarr.client import SonarrClient, SonarrError, manual_import_file
from sonarrimport.sonarr.models import Episode, Language, QualityDefinition

logger = logging.getLogger(__name__)

DOWNLOADED_EPISODES_SCAN = "DownloadedEpisodesScan"
MANUAL_IMPORT = "ManualImport"


@dataclass
class ImportOptions:
    """Options for a single import run."""

    dry_run: bool = False
    verbose: bool = False


class Importer:
    """Runs the pipeline for one settings record."""

    def __init__(
        self,
        settings: SonarrSettings,
        options: ImportOptions,
        client: Optional[SonarrClient],
        resolver: SeriesResolver,
    ) -> None:
        self.settings = settings
        self.options = options
        self.client = client
        self.resolver = resolver
        self._episodes: Dict[int, List[Episode]] = {}
        self._qualities: Optional[List[QualityDefinition]] = None
        self._languages: Optional[List[Language]] = None

    # ------------------------------------------------------------------
    # Lookups (loaded lazily, at most once per run)
    # ------------------------------------------------------------------
    async def episode_ids(
        self, client: SonarrClient, series_id: int, reference: EpisodeReference
    ) -> Optional[List[int]]:
        """Sonarr episode ids for *reference*, or None if any is missing."""
        if series_id not in self._episodes:
            self._episodes[series_id] = await client.get_episodes(series_id)
        by_number = {
            (ep.season_number, ep.episode_number): ep.id
            for ep in self._episodes[series_id]
        }
        ids = []
        for number in reference.episodes:
            episode_id = by_number.get((reference.season, number))
            if episode_id is None:
                return None
            ids.append(episode_id)
        return ids

    async def quality(
        self, client: SonarrClient, name: str
    ) -> Optional[QualityDefinition]:
        if self._qualities is None:
            self._qualities = await client.get_quality_definitions()
        by_name = {qd.quality.name.lower(): qd for qd in self._qualities}
        return by_name.get(name.lower()) or by_name.get("unknown")

    async def language(self, client: SonarrClient, name: str) -> Optional[Language]:
        if self._languages is None:
            self._languages = await client.get_languages()
        return next(
            (lang for lang in self._languages if lang.name.lower() == name.lower()),
            None,
        )

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------
    def _prepare_path(self, path: Path, new_name: str, item_messages: List[str]) -> Path:
        """Rename and trim *path*; failures are logged and leave it in place."""
        dry_run = self.options.dry_run
        base = self.settings.downloads_folder
        if new_name != path.name:
            try:
                path = rename_file(path, new_name, dry_run=dry_run)
            except (OSError, ValueError) as exc:
                logger.error("Failed to rename file: %s (%s)", path, exc)
                item_messages.append(f"rename failed: {exc}")
        if self.settings.trim_folders:
            try:
                path = trim_folder(path, base, dry_run=dry_run)
            except OSError as exc:
                logger.error("Failed to trim folders for %s (%s)", path, exc)
                item_messages.append(f"trim failed: {exc}")
        return path

    async def _submit(
        self, client: SonarrClient, item: ImportItem, release: ReleaseInfo
    ) -> None:
        resolution = item.resolution
        import_mode = self.settings.import_mode

        if resolution.series_id is not None and release.episode is not None:
            ids = await self.episode_ids(
                client, resolution.series_id, release.episode
            )
            if ids:
                entry = manual_import_file(
                    item.remote_path,
                    resolution.series_id,
                    ids,
                    await self.quality(client, release.quality),
                    await self.language(client, release.language),
                    revision=release.revision,
                    release_group=release.release_group,
                )
                item.command = MANUAL_IMPORT
                await client.manual_import([entry], import_mode)
                return
            logger.warning(
                "Episode %s not found in series %s; falling back to %s",
                release.episode,
                resolution.series_id,
                DOWNLOADED_EPISODES_SCAN,
            )
            item.message = f"episode {release.episode} not found in series"

        item.command = DOWNLOADED_EPISODES_SCAN
        await client.downloaded_episodes_scan(item.remote_path, import_mode)

    async def process(self, path: Path) -> ImportItem:
        """Run one video file through the pipeline."""
        original_name = path.name
        new_name = apply_transforms(original_name, self.settings.transforms)
        messages: List[str] = []
        path = self._prepare_path(path, new_name, messages)

        remote_path = translate_path(
            self.settings.downloads_folder, path, self.settings.mapping_path
        )
        release = parse_release(path.name)
        resolution = self.resolver.resolve(path.name, release)
        item = ImportItem(
            path=path,
            original_name=original_name,
            remote_path=remote_path,
            release=release,
            resolution=resolution,
        )

        if self.options.dry_run or self.client is None:
            item.status = ImportStatus.DRY_RUN
            if resolution.resolved and release.episode is not None:
                item.command = MANUAL_IMPORT
            logger.info(" => %s", remote_path)
        else:
            try:
                await self._submit(self.client, item, release)
            except SonarrError as exc:
                item.status = ImportStatus.FAILED
                messages.append(str(exc))
                logger.error("%s", exc)
                if exc.body:
                    logger.error("Response: %s", exc.body)
            else:
                logger.info(" - Executed Sonarr command for: %s", remote_path)

        if messages:
            item.message = "; ".join(filter(None, [item.message, *messages]))
        return item


def _log_header(settings: SonarrSettings, options: ImportOptions) -> None:
    logger.info("Starting video processing for: %s", settings.downloads_folder)
    logger.debug(" Base URL:     %s", settings.url)
    logger.debug(" API Key:      %s", settings.masked_api_key)
    logger.debug(" Mapping:      %s", settings.mapping_path)
    logger.debug(" Timeout:      %s", settings.timeout_secs)
    logger.debug(" Import Mode:  %s", settings.import_mode.value)
    logger.debug(" Trim Folders: %s", settings.trim_folders)
    logger.debug(" Auto Match:   %s", settings.auto_match)
    logger.debug(" Dry Run:      %s", options.dry_run)


async def run_import(
    settings: SonarrSettings,
    options: ImportOptions,
    *,
    client: Optional[SonarrClient] = None,
    store: Optional[MappingStore] = None,
) -> ImportReport:
    """Scan the downloads folder and submit every video to Sonarr.

    Args:
        settings: Validated Sonarr settings.
        options: Run options (dry-run, verbose).
        client: Sonarr client to use; one is created from *settings* when
            omitted. Never used in dry-run.
        store: Persists auto-matched mappings; ignored in dry-run.

    Returns:
        The report of every processed file.

    Raises:
        DownloadsFolderNotFoundError: If the downloads folder is missing.
    """
    _log_header(settings, options)
    report = ImportReport(
        downloads_folder=settings.downloads_folder, dry_run=options.dry_run
    )

    videos = scan_downloads(settings.downloads_folder)
    if not videos:
        logger.info("No videos found. Nothing to do!")
        return report
    logger.info("Processing %d video file(s)...", len(videos))

    async with AsyncExitStack() as stack:
        if options.dry_run:
            client = None
        elif client is None:
            client = await stack.enter_async_context(
                SonarrClient(
                    settings.url, settings.api_key, retries=settings.retries
                )
            )

        library = None
        if settings.auto_match and client is not None:
            try:
                library = await client.get_series()
                logger.debug("Loaded %d series for auto-match", len(library))
            except SonarrError as exc:
                logger.error("Could not load series for auto-match: %s", exc)
        elif settings.auto_match:
            logger.info("Auto-match is disabled in dry-run mode")

        resolver = SeriesResolver(
            list(settings.series_mappings),
            auto_match=settings.auto_match,
            threshold=settings.auto_match_threshold,
            library=library,
            store=None if options.dry_run else store,
        )
        importer = Importer(settings, options, client, resolver)

        for video in videos:
            report.items.append(await importer.process(video))
            if settings.timeout_secs > 0 and not options.dry_run:
                logger.debug("Sleeping for %d seconds...", settings.timeout_secs)
                await asyncio.sleep(settings.timeout_secs)

        report.new_mappings = len(resolver.new_mappings)

    if report.success:
        logger.info("All processing completed successfully.")
    else:
        logger.info("Processing completed with errors.")
    return report
