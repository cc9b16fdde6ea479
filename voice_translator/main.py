"""
Voice Translator - Command line entry point.

Translates one or more audio files and prints the result:

    python -m voice_translator.main speech.wav --to zh ja
    python -m voice_translator.main a.wav b.wav --from en --to fr --out ./out
    python -m voice_translator.main --languages
    python -m voice_translator.main --health
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path

from voice_translator.config.constants import AUTO_LANGUAGE
from voice_translator.config.settings import settings
from voice_translator.services.engine import BatchReport, create_engine, shutdown_engine
from voice_translator.services.languages import get_supported_languages
from voice_translator.services.models import PipelineResult, VoiceOptions

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate speech recordings into other languages")
    parser.add_argument("files", nargs="*", help="Audio files to translate")
    parser.add_argument("--from", dest="source", default=AUTO_LANGUAGE,
                        help="Source language (default: auto-detect)")
    parser.add_argument("--to", dest="targets", nargs="+", default=["en"],
                        help="One or more target languages")
    parser.add_argument("--voice-type", default="NEUTRAL", choices=["NEUTRAL", "MALE", "FEMALE"])
    parser.add_argument("--rate", type=float, default=1.0, help="Speaking rate (1.0 = normal)")
    parser.add_argument("--pitch", type=float, default=0.0, help="Pitch offset in semitones")
    parser.add_argument("--no-speech", action="store_true", help="Skip speech synthesis")
    parser.add_argument("--no-enhance", action="store_true", help="Skip band-pass filtering")
    parser.add_argument("--out", type=Path, help="Directory for synthesized audio")
    parser.add_argument("--languages", action="store_true", help="List supported languages and exit")
    parser.add_argument("--health", action="store_true", help="Check provider and cache health and exit")
    parser.add_argument("--stats", action="store_true", help="Print engine statistics when done")
    return parser


def _print_result(name: str, result: PipelineResult, out_dir: Path | None):
    print(f"\n📄 {name}")
    print(f"   Source ({result.detected_language}): {result.original_text}")
    print(f"   Quality: {result.quality_score:.2f} | {result.processing_time_ms:.0f}ms"
          f"{' (cached)' if result.from_cache else ''}")
    for lang, entry in result.translations.items():
        if entry.error and not entry.ok:
            print(f"   ❌ {lang}: {entry.error}")
            continue
        print(f"   ✅ {lang}: {entry.translated_text}")
        if entry.error:
            print(f"      ⚠️  {entry.error}")
        if out_dir and entry.synthesized_audio:
            out_dir.mkdir(parents=True, exist_ok=True)
            suffix = (entry.audio_encoding or "mp3").lower()
            target = out_dir / f"{Path(name).stem}.{lang}.{suffix}"
            target.write_bytes(entry.synthesized_audio)
            print(f"      🔊 {target}")


async def run(args: argparse.Namespace) -> int:
    if args.languages:
        for lang in get_supported_languages():
            print(f"{lang['code']:<8} {lang['display_name']}")
        return 0

    engine = await create_engine(settings)
    try:
        if args.health:
            status = await engine.health_check()
            print(json.dumps(status, indent=2))
            return 0 if all(status.values()) else 1

        if not args.files:
            logger.error("No audio files given")
            return 2

        options = VoiceOptions(
            voice_type=args.voice_type,
            speaking_rate=args.rate,
            pitch=args.pitch,
            synthesize=not args.no_speech,
            enhance_audio=not args.no_enhance,
        )

        await engine.start()
        files = []
        for path in map(Path, args.files):
            files.append((str(path), path.read_bytes()))

        # One batch per container format, since options carry the format
        by_format: dict[str, list] = {}
        for name, data in files:
            by_format.setdefault(_format_of(name), []).append((name, data))
        report = BatchReport()
        for fmt, group in by_format.items():
            fmt_options = replace(options, audio_format=fmt)
            partial = await engine.translate_batch(group, args.targets, args.source, fmt_options)
            report.items.extend(partial.items)

        for item in report.items:
            if item.ok:
                _print_result(item.name, item.result, args.out)
            else:
                print(f"\n📄 {item.name}\n   ❌ {item.error_code}: {item.error}")

        print(f"\n{report.success_count}/{report.total_files} files translated")
        if args.stats:
            print(json.dumps(asdict(engine.get_stats()), indent=2))
        return 0 if report.failure_count == 0 else 1
    finally:
        await shutdown_engine(engine)


def _format_of(name: str) -> str:
    return Path(name).suffix.lstrip(".").lower() or "wav"


def main(argv=None) -> int:
    configure_logging(settings.LOG_LEVEL)
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("Stopped manually")
        return 130


if __name__ == "__main__":
    sys.exit(main())
