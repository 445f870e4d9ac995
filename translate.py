"""
Command-line interface for text translation
"""
import argparse
import asyncio
import json
import sys

from tqdm.auto import tqdm

from multitranslate.config import (
    CHUNK_MAX_SIZE, FAN_OUT_MODE, MAX_RETRIES, OPENAI_API_KEY, OPENAI_MODEL,
    SUPPORTED_PROVIDERS, FAN_OUT_MODES, TRANSLATION_PROVIDER, TranslationConfig,
)
from multitranslate.core.events import EventBus, EventType
from multitranslate.core.exceptions import (
    AllLanguagesFailedError, ConfigurationError, InputError, TranslationCancelledError,
)
from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.orchestrator import translate_text
from multitranslate.languages import TARGET_LANGUAGES, resolve_languages
from multitranslate.utils.unified_logger import setup_cli_logger, LogType


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate English text into nine languages.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-i", "--input", help="Path to a UTF-8 text file to translate ('-' for stdin).")
    source.add_argument("-t", "--text", help="Text to translate.")
    parser.add_argument("-l", "--languages", default=None,
                        help="Comma-separated subset of languages (keys or codes). Default: all nine.")
    parser.add_argument("--provider", default=TRANSLATION_PROVIDER, choices=SUPPORTED_PROVIDERS,
                        help=f"Translation provider (default: {TRANSLATION_PROVIDER}).")
    parser.add_argument("--fan-out", dest="fan_out", default=FAN_OUT_MODE, choices=FAN_OUT_MODES,
                        help=f"Run languages in parallel or one by one (default: {FAN_OUT_MODE}).")
    parser.add_argument("-cs", "--chunk-size", dest="chunk_size", type=int, default=CHUNK_MAX_SIZE,
                        help=f"Maximum characters per request (default: {CHUNK_MAX_SIZE}).")
    parser.add_argument("--max-retries", dest="max_retries", type=int, default=MAX_RETRIES,
                        help=f"Retries per chunk after the first attempt (default: {MAX_RETRIES}).")
    parser.add_argument("--openai_api_key", default=OPENAI_API_KEY,
                        help="OpenAI API key (required for openai and google+openai providers).")
    parser.add_argument("--openai_model", default=OPENAI_MODEL, help=f"Chat model (default: {OPENAI_MODEL}).")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output.")
    return parser


def read_source(args) -> str:
    if args.text is not None:
        return args.text
    if args.input == "-":
        return sys.stdin.read()
    with open(args.input, "r", encoding="utf-8") as f:
        return f.read()


async def run(args, text: str) -> int:
    logger = setup_cli_logger(enable_colors=not args.no_color)
    config = TranslationConfig.from_cli_args(args)
    languages = args.languages.split(",") if args.languages else None
    targets = resolve_languages(languages)

    event_bus = EventBus()
    if not args.json:
        logger.attach(event_bus)

    progress = tqdm(total=len(targets), desc="Languages", unit="lang", disable=args.json)

    def advance(event):
        progress.update(1)

    event_bus.subscribe_multiple([EventType.LANGUAGE_COMPLETED, EventType.LANGUAGE_FAILED], advance)

    token = CancellationToken()
    try:
        result = await translate_text(text, config=config, event_bus=event_bus,
                                      cancel_token=token, languages=languages)
    except asyncio.CancelledError:
        token.cancel("Interrupted by user")
        raise
    finally:
        progress.close()

    if args.json:
        print(json.dumps({"translations": result.to_dict(), "errors": result.failed},
                         ensure_ascii=False, indent=2))
        return 0

    for language in TARGET_LANGUAGES:
        if language.key not in result.results:
            continue
        outcome = result.results[language.key]
        if outcome.succeeded:
            print(f"\n[{language.name}]\n{outcome.text}")
        else:
            print(f"\n[{language.name}] FAILED: {outcome.error}")
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_cli_logger(enable_colors=not args.no_color)

    if args.provider in ("openai", "google+openai") and not args.openai_api_key:
        parser.error(f"--openai_api_key is required when using {args.provider} provider")

    try:
        text = read_source(args)
        return asyncio.run(run(args, text))
    except KeyboardInterrupt:
        logger.warning("Translation interrupted by user")
        return 130
    except (InputError, ConfigurationError, KeyError) as e:
        logger.error(str(e), LogType.ERROR_DETAIL)
        return 2
    except AllLanguagesFailedError as e:
        logger.error("Translation failed for every language", LogType.ERROR_DETAIL, {'details': str(e)})
        return 1
    except TranslationCancelledError as e:
        logger.warning(str(e))
        return 130
    except OSError as e:
        logger.error(f"Cannot read input: {e}", LogType.ERROR_DETAIL)
        return 2


if __name__ == "__main__":
    sys.exit(main())
