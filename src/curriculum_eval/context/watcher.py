"""Keep a curriculum bundle current while content files change."""

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from curriculum_eval.config.defaults import DEFAULT_WATCH_INTERVAL, WATCHED_EXTENSIONS
from curriculum_eval.context.content_loader import CurriculumLoader
from curriculum_eval.errors import CurriculumEvalError
from curriculum_eval.models.bundle import CurriculumBundle

logger = logging.getLogger("curriculum_eval.context.watcher")

Fingerprint = frozenset[tuple[str, int, int]]
ReloadCallback = Callable[[CurriculumBundle], Any]


class CurriculumWatcher:
    """Caches a bundle and rebuilds it whenever watched files change.

    Changes are detected by polling a fingerprint of every ``.md``, ``.yaml``,
    ``.yml`` and ``.tql`` file under the content root (path, mtime, size).
    A change of any file rebuilds the whole bundle.
    """

    def __init__(self, loader: CurriculumLoader):
        """Initialize the watcher.

        Args:
            loader: Loader used for every (re)build.
        """
        self._loader = loader
        self._bundle: Optional[CurriculumBundle] = None
        self._fingerprint: Optional[Fingerprint] = None
        self.reload_count = 0

    @property
    def content_root(self) -> Path:
        return self._loader.content_root

    @property
    def bundle(self) -> Optional[CurriculumBundle]:
        """The current bundle, if one has been built."""
        return self._bundle

    async def get(self) -> CurriculumBundle:
        """Current bundle, building it on first use."""
        if self._bundle is None:
            await self._rebuild()
        return self._bundle

    def invalidate(self) -> None:
        """Drop the cached bundle so the next get() rebuilds it."""
        self._bundle = None
        self._fingerprint = None

    def fingerprint(self) -> Fingerprint:
        """Snapshot of every watched file under the content root."""
        entries = []
        if not self.content_root.is_dir():
            return frozenset()
        for path in self.content_root.rglob("*"):
            if path.suffix not in WATCHED_EXTENSIONS:
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            if path.is_file():
                entries.append((path.relative_to(self.content_root).as_posix(), stat.st_mtime_ns, stat.st_size))
        return frozenset(entries)

    def has_changed(self) -> bool:
        """Whether watched files differ from the last build."""
        return self._fingerprint is None or self.fingerprint() != self._fingerprint

    async def refresh_if_changed(self) -> bool:
        """Rebuild the bundle if any watched file changed.

        Returns:
            True if the bundle was rebuilt.
        """
        if self._bundle is not None and not self.has_changed():
            return False
        await self._rebuild()
        return True

    async def watch(
        self,
        interval: float = DEFAULT_WATCH_INTERVAL,
        on_reload: Optional[ReloadCallback] = None,
    ) -> None:
        """Poll for changes until cancelled.

        A failed rebuild is logged and the previous bundle is kept.

        Args:
            interval: Seconds between polls.
            on_reload: Called (or awaited) with each new bundle.
        """
        while True:
            try:
                if await self.refresh_if_changed() and on_reload is not None:
                    result = on_reload(self._bundle)
                    if inspect.isawaitable(result):
                        await result
            except CurriculumEvalError as e:
                logger.error(f"Reload failed: {e}")
                # Retry only after the next change
                self._fingerprint = self.fingerprint()
            await asyncio.sleep(interval)

    async def _rebuild(self) -> None:
        fingerprint = self.fingerprint()
        bundle = await self._loader.load()
        # Replace both together so readers never see a mixed state
        self._bundle, self._fingerprint = bundle, fingerprint
        self.reload_count += 1
        logger.info(f"Curriculum bundle rebuilt ({bundle.metadata.total_sections} sections)")
