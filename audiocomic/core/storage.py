import os
import re
import json
import shutil
from abc import ABC, abstractmethod
from typing import Optional, List
import logging

from pydantic import ValidationError
from audiocomic.core.models import ArticleIndexEntry, ArticleManifest

logger = logging.getLogger(__name__)

class StorageInterface(ABC):
    @abstractmethod
    def save_manifest(self, manifest: ArticleManifest) -> str:
        pass

    @abstractmethod
    def get_manifest(self, slug: str) -> Optional[ArticleManifest]:
        pass

    @abstractmethod
    def save_script(self, slug: str, raw_json: str) -> str:
        pass

    @abstractmethod
    def get_article_index(self) -> List[ArticleIndexEntry]:
        pass

    @abstractmethod
    def update_article_index(self, entry: ArticleIndexEntry):
        pass

    def save_article(self, manifest: ArticleManifest) -> str:
        """
        Saves the manifest and refreshes its row in the article index.
        """
        path = self.save_manifest(manifest)
        self.update_article_index(build_index_entry(manifest))
        return path


SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
DEFAULT_SLUG = "untitled"


def build_slug(title: str, max_length: int = 80) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:max_length].strip("-") or DEFAULT_SLUG


def is_valid_slug(slug: str) -> bool:
    """Lowercase alphanumeric runs joined by single hyphens, the only shape build_slug produces."""
    return bool(SLUG_PATTERN.fullmatch(slug))


def build_index_entry(manifest: ArticleManifest) -> ArticleIndexEntry:
    thumbnail = next((p.image_url for p in manifest.iter_panels() if p.image_url), None)
    return ArticleIndexEntry(
        title=manifest.title,
        slug=manifest.slug,
        source_url=manifest.source_url,
        art_style_name=manifest.art_style.name,
        created_at=manifest.created_at,
        total_panels=manifest.total_panels,
        page_count=len(manifest.pages),
        thumbnail_url=thumbnail,
        status=manifest.status,
    )


class LocalStorage(StorageInterface):
    """
    Stores articles as JSON under <root>/articles/<slug>/.
    """
    def __init__(self, root_dir: Optional[str] = None):
        self.root_dir = root_dir or os.getenv("AUDIOCOMIC_DATA_DIR", "output")

    def _article_dir(self, slug: str) -> str:
        if not is_valid_slug(slug):
            raise ValueError(f"Invalid article slug: {slug!r}")
        return os.path.join(self.root_dir, "articles", slug)

    def _article_path(self, slug: str, filename: str) -> str:
        return os.path.join(self._article_dir(slug), filename)

    @property
    def index_path(self) -> str:
        return os.path.join(self.root_dir, "articles", "index.json")

    def _write(self, path: str, content: str) -> str:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def save_manifest(self, manifest: ArticleManifest) -> str:
        path = self._write(self._article_path(manifest.slug, "manifest.json"), manifest.to_json())
        logger.info(f"💾 Manifest for '{manifest.slug}' saved to {path}")
        return path

    def get_manifest(self, slug: str) -> Optional[ArticleManifest]:
        if not is_valid_slug(slug):
            logger.warning(f"Rejected invalid slug {slug!r}")
            return None
        path = self._article_path(slug, "manifest.json")
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return ArticleManifest.model_validate(json.load(f))
        except (ValidationError, json.JSONDecodeError) as e:
            logger.error(f"❌ Failed to load manifest {path}: {e}")
            return None

    def save_script(self, slug: str, raw_json: str) -> str:
        return self._write(self._article_path(slug, "script.json"), raw_json)

    def get_article_index(self) -> List[ArticleIndexEntry]:
        if not os.path.exists(self.index_path):
            return []
        with open(self.index_path, "r", encoding="utf-8") as f:
            return [ArticleIndexEntry.model_validate(row) for row in json.load(f)]

    def _write_index(self, entries: List[ArticleIndexEntry]):
        rows = [e.model_dump(by_alias=True, exclude_none=True) for e in entries]
        self._write(self.index_path, json.dumps(rows, indent=2))

    def update_article_index(self, entry: ArticleIndexEntry):
        """Replaces the entry with the same slug, otherwise puts it first."""
        entries = self.get_article_index()
        for i, existing in enumerate(entries):
            if existing.slug == entry.slug:
                entries[i] = entry
                break
        else:
            entries.insert(0, entry)
        self._write_index(entries)

    def delete_article(self, slug: str) -> bool:
        """
        Removes the article directory and its index entry.
        Returns False if nothing existed or the slug is invalid.
        """
        if not is_valid_slug(slug):
            logger.warning(f"Rejected invalid slug {slug!r}")
            return False
        article_dir = self._article_dir(slug)
        existed = os.path.isdir(article_dir)
        if existed:
            shutil.rmtree(article_dir)
        entries = self.get_article_index()
        remaining = [e for e in entries if e.slug != slug]
        if len(remaining) != len(entries):
            self._write_index(remaining)
            existed = True
        if existed:
            logger.info(f"🗑️ Article '{slug}' deleted.")
        return existed
