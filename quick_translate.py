#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quick Translation Script - translate one SRT file without running the server

Usage:
    translator movie.srt --language French
    translator movie.srt -l uk -c "Sitcom, season 3" -o movie.uk.srt
"""

import sys
import asyncio
import argparse
from pathlib import Path

from tqdm import tqdm

# Add project to path
sys.path.insert(0, str(Path(__file__).parent))

from ai_providers import create_provider
from config.logging_config import get_logger
from config.settings import settings
from core.batch import (
    BatchTranslator,
    OrchestratorConfig,
    RetryPolicy,
    SubtitleOrchestrator,
)
from core.errors import SubtitleTranslatorError

logger = get_logger(__name__)


async def translate_file(args) -> int:
    input_file = Path(args.input)
    if not input_file.exists():
        print(f"❌ Input file not found: {input_file}")
        return 1

    try:
        api_key = args.api_key or settings.get_api_key()
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    output_file = Path(args.output) if args.output else input_file.with_name(f"{input_file.stem}.{args.language}.srt")
    text = input_file.read_text(encoding="utf-8", errors="replace")

    retry_policy = RetryPolicy.from_settings(settings)
    if args.max_attempts is not None:
        retry_policy.max_attempts = args.max_attempts or None

    try:
        translator = BatchTranslator(
            create_provider(api_key, args.model),
            retry_policy=retry_policy,
            model=args.model,
        )
        orchestrator = SubtitleOrchestrator(
            translator,
            OrchestratorConfig(batch_size=args.batch_size, strict_parsing=args.strict),
        )
    except SubtitleTranslatorError as e:
        print(f"❌ {e.message}")
        return 1

    print("=" * 60)
    print("🌐 AI SUBTITLE TRANSLATOR - Quick Translation")
    print("=" * 60)
    print(f"🤖 Model: {args.model}")
    print(f"📥 Input: {input_file}")
    print(f"📤 Output: {output_file}")
    print(f"🌐 → {args.language}")

    progress_bar = tqdm(
        total=100,
        desc="Translating",
        unit="%",
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
    )

    def on_progress(progress: float):
        progress_bar.n = int(progress * 100 + 0.5)
        progress_bar.refresh()

    try:
        result = await orchestrator.process(
            text,
            args.language,
            args.context,
            job_id=input_file.name,
            progress_callback=on_progress,
        )
    except SubtitleTranslatorError as e:
        print(f"\n❌ {e.message}")
        return 1
    finally:
        progress_bar.close()

    output_file.write_text(result.translated_text, encoding="utf-8")
    print(f"\n✅ {result.replica_count} subtitles in {result.batch_count} batches, "
          f"{result.duration_seconds:.1f}s")
    logger.info(f"Saved translation of {input_file} to {output_file}")
    print(f"📄 Saved to {output_file}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Translate an SRT subtitle file with Gemini")
    parser.add_argument('input', help='Subtitle file (.srt)')
    parser.add_argument('--language', '-l', required=True, help='Target language')
    parser.add_argument('--context', '-c', default='', help='Title, plot or speaker names')
    parser.add_argument('--output', '-o', help='Output file (default: <input>.<language>.srt)')
    parser.add_argument('--model', default=settings.default_model, help='Model name')
    parser.add_argument('--batch-size', type=int, default=settings.default_batch_size,
                        help='Subtitles per request')
    parser.add_argument('--api-key', help='Gemini API key (default: GOOGLE_API_KEY)')
    parser.add_argument('--max-attempts', type=int, help='Attempts per batch, 0 = retry forever')
    parser.add_argument('--strict', action='store_true', help='Fail on broken subtitle numbering')
    args = parser.parse_args()

    try:
        return asyncio.run(translate_file(args))
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
