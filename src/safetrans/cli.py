import argparse
import logging
import os
import sys

from safetrans.config import ConfigError, load_config
from safetrans.core import AssessmentEngine
from safetrans.feedback import warnings_for
from safetrans.lexicon import LexiconLoadError, load_lexicon
from safetrans.scoring import quality_level
from safetrans.translator import language_name


def print_record(record):
    score = record.score
    status = "FAILED" if record.failed else quality_level(score.final_score).upper()
    print(f"=== {language_name(record.language)} ({record.language}) - {score.final_score}/100 [{status}]")
    print(f"  Translation:      {record.translated}")
    print(f"  Back-translation: {record.reverse_translated}")
    print(f"  Scores: reverse={score.reverse_translation_score:.1f} cultural={score.cultural_context_score:.1f} "
          f"ambiguous={score.ambiguous_term_score:.1f} terminology={score.terminology_score:.1f}")
    for warning in record.warnings:
        print(f"  ! {warning}")
    for suggestion in record.suggestions:
        print(f"  > {suggestion}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="SafeTrans emergency notice translation quality assessment")
    parser.add_argument("text", nargs="?", help="Original notice text (reads stdin when omitted)")
    parser.add_argument("--lang", "-l", nargs="+", help="Target language codes (default: en zh ja vi th)")
    parser.add_argument("--output", "-o", type=str, help="Directory for JSON/Excel/PDF reports")
    parser.add_argument("--config", type=str, help="Path to JSON configuration file")
    parser.add_argument("--lexicon", type=str, help="Path to a lexicon JSON asset")
    parser.add_argument("--concurrency", "-c", type=int, help="Parallel language pipelines")
    parser.add_argument("--no-cache", action="store_true", help="Disable the translation cache")
    parser.add_argument("--warnings-only", action="store_true", help="Only print lexicon warnings, no translation")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    text = args.text if args.text is not None else sys.stdin.read()
    text = text.strip()
    if not text:
        parser.error("the original notice text is required")

    if args.warnings_only:
        try:
            lexicon = load_lexicon(args.lexicon)
        except LexiconLoadError as e:
            print(f"Error: {e}")
            return 1
        warnings = warnings_for(text, lexicon)
        for warning in warnings:
            print(f"! {warning}")
        if not warnings:
            print("No lexicon warnings.")
        return 0

    overrides = {
        "target_languages": args.lang,
        "concurrency": args.concurrency,
        "lexicon_path": args.lexicon,
        "enable_cache": False if args.no_cache else None,
    }
    try:
        config = load_config(args.config, overrides)
        engine = AssessmentEngine(config)
    except (ConfigError, LexiconLoadError) as e:
        print(f"Error: {e}")
        return 1

    if args.output and os.path.exists(args.output) and not os.path.isdir(args.output):
        print(f"Error: Output path '{args.output}' exists as a file. Please remove it or specify a different directory.")
        return 1

    print(f"Assessing translations into {', '.join(config.target_languages)} "
          f"with concurrency {config.concurrency}...")
    try:
        results = engine.assess(text)
    except KeyboardInterrupt:
        print("Cancelled. Showing completed languages only.")
        results = engine.results

    for lang in config.target_languages:
        if lang in results:
            print_record(results[lang])

    if args.output:
        print("Generating reports...")
        engine.generate_reports(args.output)
        print(f"Done! Reports saved in {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
