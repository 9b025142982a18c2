import os
import json
import sys
import argparse
import logging
from datetime import datetime, timezone
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from audiocomic.core.errors import ArticleNotFoundError, PipelineError, ScriptGenerationError
from audiocomic.core.models import ArticleManifest, ArticleScript, ComicPanel
from audiocomic.core.storage import LocalStorage, StorageInterface, build_slug
from audiocomic.agents.narrative.input_reader import InputReaderAgent
from audiocomic.agents.narrative.script_writer import ScriptWriterAgent
from audiocomic.agents.narrative.speaker_consolidator import SpeakerConsolidator
from audiocomic.agents.assembly.layout_engine import LayoutEngine, PLACEMENT_VERSION
from audiocomic.agents.assembly.lettering import LetteringAgent
from audiocomic.agents.infrastructure.resilience_agent import get_resilience_agent
from audiocomic.utils.llm_interface import LLMInterface
from audiocomic.utils.voice_mapping import build_voice_profiles, collect_speakers

logger = logging.getLogger("AudioComic")

# Parallel script chunks for cloud models; local models get fewer
CONCURRENCY_LIMIT = 5
LOCAL_CONCURRENCY_LIMIT = 2


def configure_logging(log_file: str = "pipeline.log"):
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, mode='w'),
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )


def generate_panels(chunks: List[str], title: str, script_writer: ScriptWriterAgent,
                    max_workers: int) -> tuple:
    """
    Runs the script writer over every chunk in parallel, keeping chunk order.
    Returns (art_style, panels, failed_chunk_count). The first chunk is
    mandatory since it carries the art style; later failures are skipped.
    """
    tasks = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(chunks)))) as executor:
        for i, chunk in enumerate(chunks):
            logger.info(f"✍️ Scheduling Chunk {i+1}/{len(chunks)}...")
            # One attempt here; LLMInterface already retries each request
            tasks.append(executor.submit(
                script_writer.run, chunk, expected_schema=ArticleScript,
                title=title, chunk_number=i + 1,
            ))

    art_style = None
    panels: List[ComicPanel] = []
    failed = 0
    for i, task in enumerate(tasks):
        try:
            chunk_script = task.result()
        except Exception as e:
            logger.error(f"❌ Failed to process chunk {i+1}: {e}")
            if i == 0:
                if isinstance(e, PipelineError):
                    raise
                raise ScriptGenerationError(1, str(e)) from e
            failed += 1
            continue

        if i == 0:
            art_style = chunk_script.art_style
            logger.info(f"🎨 Art style: {art_style.name}")
        panels.extend(chunk_script.panels)
        logger.info(f"Chunk {i+1} added {len(chunk_script.panels)} panels (total: {len(panels)})")

    return art_style, panels, failed


def build_article(input_path: str, title: str, storage: StorageInterface,
                  source_url: str = "", model_name: Optional[str] = None) -> ArticleManifest:
    input_reader = InputReaderAgent("InputReader")
    script_writer = ScriptWriterAgent("ScriptWriter", config={"model_name": model_name})
    layout_engine = LayoutEngine("LayoutEngine")

    raw_text = input_reader.process(input_path)
    if not raw_text or not raw_text.strip():
        raise PipelineError(f"Input from '{input_path}' is empty")

    chunks = input_reader.chunk_text(raw_text)
    logger.info(f"📄 Processing article ({len(raw_text)} characters) in {len(chunks)} chunk(s)...")

    max_workers = LOCAL_CONCURRENCY_LIMIT if script_writer.llm.is_local else CONCURRENCY_LIMIT
    art_style, panels, failed = generate_panels(chunks, title, script_writer, max_workers)

    placed = layout_engine.run(panels)
    pages = layout_engine.paginate(placed)
    slug = build_slug(title)

    manifest = ArticleManifest(
        title=title,
        slug=slug,
        source_url=source_url,
        art_style=art_style,
        created_at=datetime.now(timezone.utc).isoformat(),
        total_panels=len(placed),
        pages=pages,
        placement_version=PLACEMENT_VERSION,
        status="partial" if failed else "complete",
        audio_enabled=any(o.audio_url for p in placed for o in p.overlays),
    )
    script_json = manifest.model_dump_json(by_alias=True, include={"art_style", "total_panels", "pages"}, indent=2)
    manifest.script_url = storage.save_script(slug, script_json)
    storage.save_article(manifest)
    logger.info(f"🚀 Article '{title}' saved as '{slug}' with {len(placed)} panels on {len(pages)} pages.")
    return manifest


def migrate_article(slug: str, storage: StorageInterface) -> ArticleManifest:
    manifest = storage.get_manifest(slug)
    if manifest is None:
        raise ArticleNotFoundError(slug)

    layout_engine = LayoutEngine("LayoutEngine")
    if not layout_engine.needs_placement(manifest):
        logger.info(f"⏭️ '{slug}' already at placement v{manifest.placement_version}.")
        return manifest

    migrated = layout_engine.migrate_manifest(manifest)
    storage.save_article(migrated)
    return migrated


def consolidate_speakers(manifest: ArticleManifest, model_name: Optional[str] = None) -> Dict[str, str]:
    """Maps every voiced dialogue speaker of the article onto a shared voice name."""
    consolidator = SpeakerConsolidator("SpeakerConsolidator", config={"model_name": model_name})
    return consolidator.run(collect_speakers(manifest.iter_panels()), title=manifest.title)


def letter_article(slug: str, storage: StorageInterface, voice_map: Optional[Dict[str, Dict[str, str]]] = None,
                   consolidate: bool = False, model_name: Optional[str] = None) -> List[str]:
    """
    Renders placement previews for every panel that has a local image.
    `voice_map` (voice name -> {"voice_id", "description"}) lets narrator markers be told apart;
    with `consolidate`, speakers are first grouped onto shared voice names.
    """
    manifest = storage.get_manifest(slug)
    if manifest is None:
        raise ArticleNotFoundError(slug)

    speaker_mapping = consolidate_speakers(manifest, model_name) if consolidate else None
    voices = build_voice_profiles(voice_map or {}, speaker_mapping)
    lettering_agent = LetteringAgent("LetteringAgent")
    outputs = []
    for panel in manifest.iter_panels():
        path = lettering_agent.run(panel, voices=voices)
        if path:
            outputs.append(path)
    logger.info(f"🖋️ Lettered {len(outputs)} panel(s) for '{slug}'.")
    return outputs


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Audio Comic Article Generator")
    parser.add_argument("--input", type=str, help="Path to article text/markdown/pdf/docx file")
    parser.add_argument("--title", type=str, help="Article title (used for the slug)")
    parser.add_argument("--source_url", type=str, default="", help="Where the article was published")
    parser.add_argument("--output", type=str, default=os.getenv("AUDIOCOMIC_DATA_DIR", "output"), help="Data directory")
    parser.add_argument("--model", type=str, default=None, help="LiteLLM model name for script generation")
    parser.add_argument("--migrate", type=str, metavar="SLUG", help="Re-place overlays of a stored article if outdated")
    parser.add_argument("--letter", type=str, metavar="SLUG", help="Render placement previews for a stored article")
    parser.add_argument("--voices", type=str, help="JSON file mapping speakers to voice ids, used with --letter")
    parser.add_argument("--consolidate", action="store_true", help="Group speakers onto shared voices before --letter (uses the LLM)")
    args = parser.parse_args(argv)

    configure_logging()
    storage = LocalStorage(args.output)

    try:
        if args.migrate:
            migrate_article(args.migrate, storage)
            return 0
        if args.letter:
            voice_map = None
            if args.voices:
                with open(args.voices, "r", encoding="utf-8") as f:
                    voice_map = json.load(f)
            letter_article(args.letter, storage, voice_map, consolidate=args.consolidate, model_name=args.model)
            return 0

        if not args.input or not args.title:
            parser.error("--input and --title are required to build an article")

        health = get_resilience_agent().run(None)
        if health["status"] != "healthy":
            logger.warning(f"⚠️ Environment degraded: {health['checks']}")

        if not LLMInterface(model_name=args.model).is_healthy():
            logger.error("❌ LOCAL LLM SERVICE (Ollama) IS UNREACHABLE! Ensure Ollama is running on port 11434.")
            return 1

        build_article(args.input, args.title, storage, source_url=args.source_url, model_name=args.model)
        return 0
    except PipelineError as e:
        logger.error(f"Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
