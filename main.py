#!/usr/bin/env python3
"""
Tapu Verifier — Entry Point
============================

Verifies a scanned Tapu image against a claimed Ada number and prints a
report. The exit code doubles as the registration gate.

Usage:
    python main.py tapu.jpg --ada 1234
    python main.py tapu.jpg --ada 1234 --parsel 56 --verbose
    TAPU_MATCH_THRESHOLD=0.95 python main.py tapu.jpg --ada 1234
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tapu_verifier.config import VerifierSettings
from tapu_verifier.enrichment import apply_verification
from tapu_verifier.exceptions import InvalidClaimError
from tapu_verifier.models import (
    EngineFailure,
    LandRecordDraft,
    Mismatch,
    Rejected,
    Unresolved,
    Verified,
)
from tapu_verifier.pipeline import DocumentVerificationPipeline

load_dotenv()


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _print_verified(outcome: Verified, draft: LandRecordDraft) -> None:
    fields = outcome.fields
    print(f"  Your Input:  {outcome.claimed}")
    print(f"  Document:    {fields.ada_number} {_DIM}(via {outcome.source}){_RESET}")
    print(f"  Match Score: {_GREEN}{outcome.match.score:.1%} [PASS]{_RESET}")
    print(f"{'─' * _WIDTH}")
    print(f"  Authenticity: {outcome.authenticity_confidence:.1%}")
    print(f"  Parsel:      {fields.parsel_number or 'Not detected'}")
    print(f"  District:    {fields.district or 'Not detected'}")
    if fields.area_value is not None:
        print(f"  Area:        {fields.area_value} m²")
    print(f"  Survey No:   {draft.survey_no}")


def _print_mismatch(outcome: Mismatch) -> None:
    print(f"  Your Input:  {outcome.claimed}")
    print(f"  Document:    {outcome.extracted}")
    print(f"  Match Score: {_RED}{outcome.score:.1%} [FAIL]{_RESET}")
    print(f"  Required:    {outcome.threshold:.0%} match or higher")
    print(f"  Authenticity: {outcome.authenticity_confidence:.1%}")


def _print_unresolved(outcome: Unresolved) -> None:
    found = ", ".join(outcome.candidate_numbers) or "None detected"
    print(f"  Your Input:  {outcome.claimed}")
    print(f"  Authenticity: {outcome.authenticity_confidence:.1%}")
    print(f"  Numbers found in document: {_BOLD}{found}{_RESET}")
    print(f"  District:    {outcome.district or 'Not found'}")
    print(f"{'─' * _WIDTH}")
    print(f"  {_DIM}Raw text sample:{_RESET}")
    for line in outcome.text_sample.splitlines():
        print(f"    {_DIM}{line}{_RESET}")


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_report(outcome, draft: LandRecordDraft) -> int:
    """Pretty-print the verification outcome with ANSI color codes.

    Returns:
        0 if registration may proceed, 1 otherwise.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  TAPU VERIFICATION REPORT{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  Outcome:     {_BOLD}{outcome.status.upper()}{_RESET}")
    print(f"{'─' * _WIDTH}")

    if isinstance(outcome, Verified):
        _print_verified(outcome, draft)
    elif isinstance(outcome, Mismatch):
        _print_mismatch(outcome)
    elif isinstance(outcome, Unresolved):
        _print_unresolved(outcome)
    elif isinstance(outcome, Rejected):
        print(f"  {_RED}{outcome.message}{_RESET}")
    elif isinstance(outcome, EngineFailure):
        print(f"  {_RED}[{outcome.code}]{_RESET} {outcome.reason}")

    print(f"{'=' * _WIDTH}")
    if outcome.is_verified:
        print(f"  {_GREEN}{_BOLD}ADA NUMBER VERIFIED  --  you may register this land{_RESET}")
    elif isinstance(outcome, Unresolved):
        print(f"  {_YELLOW}{_BOLD}MANUAL REVIEW NEEDED  --  registration blocked{_RESET}")
    else:
        print(f"  {_RED}{_BOLD}REGISTRATION BLOCKED{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return 0 if outcome.is_verified else 1


# ─── Main ────────────────────────────────────────────────────────────


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify a Tapu image against an Ada number.")
    parser.add_argument("image", type=Path, help="Scanned Tapu (PNG, JPEG, TIFF, ...)")
    parser.add_argument("--ada", required=True, help="Claimed Ada number")
    parser.add_argument("--parsel", default="", help="Claimed Parsel number")
    parser.add_argument("--district", default="", help="District (İlçe)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log pipeline stages")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the verification pipeline on one image and print the report."""
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("\n  Starting Tapu Verifier...")
    print(f"  Scanning {args.image}...\n")

    try:
        content = args.image.read_bytes()
    except OSError as exc:
        print(f"  {_RED}Cannot read {args.image}: {exc.strerror or exc}{_RESET}")
        sys.exit(2)

    pipeline = DocumentVerificationPipeline(settings=VerifierSettings.from_env())
    try:
        outcome = asyncio.run(pipeline.verify(content, args.ada))
    except InvalidClaimError as exc:
        print(f"  {_RED}{exc}{_RESET}")
        sys.exit(2)

    draft = LandRecordDraft(
        ada_number=args.ada.strip(),
        parsel_number=args.parsel,
        district=args.district,
    )
    exit_code = print_report(outcome, apply_verification(draft, outcome))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
