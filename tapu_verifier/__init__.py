"""
Tapu Verifier — Paranoid verification of scanned land-title documents.

Architecture: Authenticity gate → Normalize → OCR (mode-switch retry) → Extract → Fuzzy recovery → Score → Decide
Philosophy:  Trust the OCR to read. Trust only code to decide.
"""

__version__ = "1.0.0"
