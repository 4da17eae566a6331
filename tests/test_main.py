"""CLI tests: the exit code is the registration gate."""

from __future__ import annotations

import pytest

import main
from conftest import FakeOcrFactory, StubOracle
from tapu_verifier.pipeline import DocumentVerificationPipeline

RAW_OCR = "TAPU SENEDI\nIlcesi TEPEBASI\nAda No 1234  Parsel No 56\n" + "Aciklama " * 10


@pytest.fixture
def tapu_file(tmp_path, tapu_image):
    path = tmp_path / "tapu.png"
    tapu_image.save(path)
    return path


@pytest.fixture
def fake_pipeline(monkeypatch):
    def build(settings=None):
        return DocumentVerificationPipeline(
            oracle=StubOracle(0.96), engine_factory=FakeOcrFactory(RAW_OCR), settings=settings
        )

    monkeypatch.setattr(main, "DocumentVerificationPipeline", build)


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main.main(argv)
    return exc_info.value.code


def test_verified_exits_zero(tapu_file, fake_pipeline, capsys):
    assert _run([str(tapu_file), "--ada", "1234"]) == 0
    out = capsys.readouterr().out
    assert "VERIFIED" in out
    assert "Ada: 1234 / Parsel: 56" in out


def test_mismatch_exits_one(tapu_file, fake_pipeline, capsys):
    assert _run([str(tapu_file), "--ada", "9999"]) == 1
    assert "REGISTRATION BLOCKED" in capsys.readouterr().out


def test_blank_claim_exits_two(tapu_file, fake_pipeline):
    assert _run([str(tapu_file), "--ada", " "]) == 2


def test_missing_image_exits_two(tmp_path, fake_pipeline, capsys):
    assert _run([str(tmp_path / "missing.png"), "--ada", "1234"]) == 2
    assert "Cannot read" in capsys.readouterr().out


def test_ada_is_required(tapu_file):
    assert _run([str(tapu_file)]) == 2
