#!/usr/bin/env python3
"""CLI over the webglue clients. Results print as JSON on stdout.

Usage examples:
  webglue answer "speed of light"
  webglue translate "Guten Morgen" --to en
  webglue autocomplete "how to"
  webglue rewrite "This sentence could be better." --action FORMAL
  webglue pos "The quick brown fox jumps."
  webglue quizlet https://quizlet.com/123456789/some-set-flash-cards/
  webglue ginger "I has a apple."
  webglue cram "I has a apple." --timeout 120
  webglue cdnjs jquery --limit 5
  webglue notion "meeting notes" --api-keys api_keys.txt
  webglue convert report.docx pdf --out report.pdf --params-file polling.json
  webglue scihub 10.1038/nature12373 --out papers/
  webglue scihub --dois-file results.jsonl --out papers/
  webglue html2pdf --url https://example.com --out example.pdf
  webglue gan toonify face.jpg --out toon.jpg
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel

from . import (
    autocomplete,
    cdnjs,
    convertio,
    gan,
    google_answer,
    google_translate,
    grammar,
    html_to_pdf,
    notion,
    pos_tagger,
    quizlet,
    scihub,
    wordtune,
)
from .config import ApiKeys, set_api_keys
from .errors import WebglueError
from .log import setup_logging
from .polling import PollSettings

logger = logging.getLogger(__name__)


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, (list, tuple)):
        return [_jsonable(o) for o in obj]
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, Path):
        return str(obj)
    return obj


def _emit(obj: Any) -> None:
    print(json.dumps(_jsonable(obj), indent=2, ensure_ascii=False))


def _poll_settings(args: argparse.Namespace) -> PollSettings:
    settings = PollSettings.load(args.params_file) if args.params_file else PollSettings()
    overrides = {
        k: getattr(args, k)
        for k in ("interval", "backoff", "timeout", "max_attempts")
        if getattr(args, k) is not None
    }
    # replace() re-runs the range checks
    return dataclasses.replace(settings, **overrides)


def _add_poll_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--params-file", type=Path, default=None, help="JSON file with polling settings (interval, backoff, max_interval, timeout, max_attempts)")
    p.add_argument("--interval", type=float, default=None, help="Seconds between status polls (default 1)")
    p.add_argument("--backoff", type=float, default=None, help="Multiply the interval by this after each poll (default 1 = fixed)")
    p.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds (default: wait forever)")
    p.add_argument("--max-attempts", type=int, default=None, help="Give up after this many polls")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="webglue", description="Call undocumented web APIs from the command line")
    p.add_argument("--api-keys", type=Path, default=None, help="KEY=VALUE file with CONVERTIO_API_KEY, NOTION_TOKEN_V2, NOTION_SPACE_ID, HTML2PDF_API_KEY, DEEPAI_API_KEY")
    p.add_argument("--log-level", type=str, default=None, help="Logging level (default: LOG_LEVEL env or INFO)")
    sub = p.add_subparsers(dest="cmd", required=True)

    a = sub.add_parser("answer", help="Google quick answer for a query")
    a.add_argument("query")
    a.add_argument("--hl", default="en")

    t = sub.add_parser("translate", help="Google Translate")
    t.add_argument("text")
    t.add_argument("--to", default="en")
    t.add_argument("--source", default="auto")

    ac = sub.add_parser("autocomplete", help="Google search suggestions")
    ac.add_argument("query")
    ac.add_argument("--hl", default="en")

    rw = sub.add_parser("rewrite", help="Wordtune rewrite suggestions")
    rw.add_argument("text")
    rw.add_argument("--action", default="REWRITE", choices=wordtune.ACTIONS)

    pos = sub.add_parser("pos", help="Parts-of-speech tagging")
    pos.add_argument("text")
    pos.add_argument("--language", default="en")

    qz = sub.add_parser("quizlet", help="Flashcards of a Quizlet set (id or URL)")
    qz.add_argument("set")
    qz.add_argument("--per-page", type=int, default=500)

    gi = sub.add_parser("ginger", help="Grammar check with Ginger")
    gi.add_argument("text")
    gi.add_argument("--lang", default="US")

    cr = sub.add_parser("cram", help="Grammar check with Cram (polling job)")
    cr.add_argument("text")
    _add_poll_args(cr)

    cd = sub.add_parser("cdnjs", help="Search CDNJS libraries")
    cd.add_argument("query")
    cd.add_argument("--limit", type=int, default=10)

    no = sub.add_parser("notion", help="Search a Notion workspace")
    no.add_argument("query")
    no.add_argument("--limit", type=int, default=20)
    no.add_argument("--space-id", default=None, help="Overrides NOTION_SPACE_ID")

    cv = sub.add_parser("convert", help="Convert a file (path or URL) with Convertio")
    cv.add_argument("file")
    cv.add_argument("format", help="Output format, e.g. pdf, docx, mp3")
    cv.add_argument("--out", type=Path, required=True)
    cv.add_argument("--filename", default=None, help="Name to report for the input file")
    _add_poll_args(cv)

    sh = sub.add_parser("scihub", help="Find/download PDFs on Sci-Hub")
    sh.add_argument("doi", nargs="?", default=None)
    sh.add_argument("--dois-file", type=Path, default=None, help="JSONL file with one record per line holding a DOI")
    sh.add_argument("--key", default="doi", help="Record field holding the DOI (with --dois-file)")
    sh.add_argument("--out", type=Path, default=None, help="Directory to save PDFs; without it only the PDF URL is printed")
    sh.add_argument("--mirror", action="append", default=None, help="Mirror base URL (repeatable)")
    sh.add_argument("--sleep", type=float, default=1.0, help="Polite delay between DOIs (batch mode)")

    hp = sub.add_parser("html2pdf", help="Render HTML or a URL to PDF")
    src = hp.add_mutually_exclusive_group(required=True)
    src.add_argument("--html-file", type=Path, default=None)
    src.add_argument("--url", default=None)
    hp.add_argument("--out", type=Path, required=True)
    hp.add_argument("--format", dest="page_format", default=None, help="Page format, e.g. A4, Letter")
    hp.add_argument("--landscape", action="store_true")

    gn = sub.add_parser("gan", help="Image-to-image GAN inference (DeepAI)")
    gn.add_argument("model", help=f"Model name, e.g. {', '.join(gan.MODELS)}")
    gn.add_argument("image", help="Image path or URL")
    gn.add_argument("--out", type=Path, default=None, help="Download the output image here")

    return p


def run(args: argparse.Namespace) -> int:
    if args.api_keys:
        set_api_keys(ApiKeys.from_env_or_file(args.api_keys))

    if args.cmd == "answer":
        answer = google_answer.google_answer(args.query, hl=args.hl)
        if answer is None:
            logger.info("No quick answer found.")
            return 1
        _emit(answer)
    elif args.cmd == "translate":
        _emit(google_translate.translate(args.text, to=args.to, source=args.source))
    elif args.cmd == "autocomplete":
        _emit(autocomplete.autocomplete(args.query, hl=args.hl))
    elif args.cmd == "rewrite":
        _emit(wordtune.rewrite(args.text, action=args.action))
    elif args.cmd == "pos":
        words = pos_tagger.tag_parts_of_speech(args.text, language=args.language)
        _emit([{**w.model_dump(), "description": w.description} for w in words])
    elif args.cmd == "quizlet":
        _emit(quizlet.quizlet_cards(args.set, per_page=args.per_page))
    elif args.cmd == "ginger":
        _emit(grammar.ginger_check(args.text, lang=args.lang))
    elif args.cmd == "cram":
        _emit(grammar.cram_check(args.text, settings=_poll_settings(args)))
    elif args.cmd == "cdnjs":
        libs = cdnjs.search_cdnjs(args.query, limit=args.limit)
        _emit([{**lib.model_dump(), "url": lib.url} for lib in libs])
    elif args.cmd == "notion":
        results = notion.notion_search(args.query, space_id=args.space_id, limit=args.limit)
        _emit([{**r.model_dump(), "url": r.url} for r in results])
    elif args.cmd == "convert":
        content = convertio.convert_file(
            args.file, args.format, args.out, filename=args.filename, settings=_poll_settings(args)
        )
        _emit({"out": args.out, "bytes": len(content)})
    elif args.cmd == "scihub":
        return _run_scihub(args)
    elif args.cmd == "html2pdf":
        html = args.html_file.read_text(encoding="utf-8") if args.html_file else None
        options = {"format": args.page_format, "landscape": True if args.landscape else None}
        pdf = html_to_pdf.html_to_pdf(html=html, url=args.url, out_path=args.out, **options)
        _emit({"out": args.out, "bytes": len(pdf)})
    elif args.cmd == "gan":
        result = gan.run_gan(args.model, args.image)
        if args.out:
            gan.download_gan_output(result, args.out)
        _emit({**result.model_dump(), "out": args.out})
    return 0


def _run_scihub(args: argparse.Namespace) -> int:
    mirrors = tuple(args.mirror) if args.mirror else scihub.SCIHUB_MIRRORS
    if args.dois_file:
        if not args.out:
            raise SystemExit("--out is required with --dois-file")
        _emit(scihub.save_scihub_pdfs(args.dois_file, args.out, key=args.key, mirrors=mirrors, sleep_seconds=args.sleep))
        return 0
    if not args.doi:
        raise SystemExit("pass a DOI or --dois-file")
    if args.out:
        path, source = scihub.download_scihub_pdf(args.doi, args.out, mirrors=mirrors)
        _emit({"doi": args.doi, "path": path, "source": source})
        return 0 if path else 1
    url = scihub.find_scihub_pdf(args.doi, mirrors=mirrors)
    _emit({"doi": args.doi, "pdf_url": url})
    return 0 if url else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        return run(args)
    except (WebglueError, ValueError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
