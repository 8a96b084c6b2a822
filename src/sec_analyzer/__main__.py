"""
CLI for sec-analyzer - analyze a filing on disk and print JSON

Usage:
  python -m sec_analyzer filing.htm                      # full AnalysisResult
  python -m sec_analyzer filing.txt --form 10-Q          # declare the form type
  python -m sec_analyzer filing.htm --format html --sections
  python -m sec_analyzer filing.htm --ratios             # graded ratios only
  python -m sec_analyzer filing.htm --enrich             # add sentiment/entity annotations
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from sec_analyzer.config import get_config
from sec_analyzer.models import AnalysisHints
from sec_analyzer.pipeline import analyze


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sec-analyzer",
        description="Extract structured financial data from an SEC filing",
    )
    parser.add_argument("path", help="Filing document (HTML or plain text)")
    parser.add_argument("--form", dest="form_type", help="Form type, e.g. 10-K, 10-Q, 8-K, 'DEF 14A'")
    parser.add_argument("--format", choices=("html", "plain"), help="Document format (detected when omitted)")
    parser.add_argument("--company", help="Company name override")
    parser.add_argument("--period", help="Period label override")
    parser.add_argument("--sections", action="store_true", help="Include section text in the output")
    parser.add_argument("--ratios", action="store_true", help="Print only the graded ratios")
    parser.add_argument("--enrich", action="store_true", help="Attach sentiment/entity annotations")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    path = Path(args.path)
    try:
        content = path.read_bytes()
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc}", file=sys.stderr)
        return 1

    hints = AnalysisHints(company_name_hint=args.company, period_hint=args.period)
    result = analyze(content, args.format, args.form_type, hints)

    if args.ratios:
        payload = [r.model_dump(mode="json") for r in result.ratios]
    elif args.enrich:
        from sec_analyzer.enrichment import RegexEnricher, TransformerEnricher, enrich_result

        enricher = TransformerEnricher() if config.enrichment_enabled else RegexEnricher()
        enricher.init()
        try:
            payload = enrich_result(result, enricher).model_dump(mode="json")
        finally:
            enricher.shutdown()
    else:
        exclude = None if args.sections else {"sections"}
        payload = result.model_dump(mode="json", exclude=exclude)
        payload["section_names"] = result.sections.names()

    print(json.dumps(payload, indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
