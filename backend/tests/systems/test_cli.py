"""
Tests for the spirit-tower CLI.

The extract command is driven through click's CliRunner with a scripted
generator and a fake submitter patched in.
"""

import pytest
from click.testing import CliRunner

from spirit_tower import __version__, cli
from spirit_tower.engine.extractor import MAX_DRAWS, Role, SpiritKind, SubmissionError

DRAW_INPUT = "\n" * MAX_DRAWS


class FakeSubmitter:
    def __init__(self, failures=()):
        self.calls = []
        self.failures = list(failures)

    async def create_character(self, name, sheet):
        self.calls.append((name, sheet))
        if self.failures:
            raise SubmissionError(self.failures.pop(0))


@pytest.fixture
def patch_session(monkeypatch, scripted_generator, sheet_factory):
    """Patch the CLI to draw the given roles and submit to a fake."""

    def _patch(role: Role, failures=()):
        submitter = FakeSubmitter(failures)
        sheets = [sheet_factory(role, gold=500 + i) for i in range(MAX_DRAWS)]
        monkeypatch.setattr(cli, "AttributeGenerator", lambda rng: scripted_generator(sheets))
        monkeypatch.setattr(cli, "HttpCharacterSubmitter", lambda base_url: submitter)
        return submitter

    return _patch


@pytest.mark.systems
def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.systems
def test_extract_civilian_locks_after_choice(patch_session):
    submitter = patch_session(Role.CIVILIAN)

    result = CliRunner().invoke(cli.main, ["extract", "Wren"], input=DRAW_INPUT + "3\n")

    assert result.exit_code == 0, result.output
    assert "FINAL LOCKED" in result.output
    assert len(submitter.calls) == 1
    name, sheet = submitter.calls[0]
    assert name == "Wren"
    assert sheet.gold == 502


@pytest.mark.systems
def test_extract_sentinel_custom_spirit(patch_session):
    submitter = patch_session(Role.SENTINEL)

    result = CliRunner().invoke(
        cli.main, ["extract", "Wren"], input=DRAW_INPUT + "1\nn\n\nPhoenix\n"
    )

    assert result.exit_code == 0, result.output
    sheet = submitter.calls[0][1]
    assert sheet.spirit.name == "Phoenix"
    assert sheet.spirit.kind is SpiritKind.CUSTOM
    # The blank name was refused before Phoenix was accepted
    assert "cannot be empty" in result.output


@pytest.mark.systems
def test_extract_retries_after_submission_error(patch_session):
    submitter = patch_session(Role.GUIDE, failures=["Network error: refused"])

    result = CliRunner().invoke(
        cli.main, ["extract", "Wren"], input=DRAW_INPUT + "1\ny\ny\n4\ny\n"
    )

    assert result.exit_code == 0, result.output
    assert "Network error: refused" in result.output
    assert len(submitter.calls) == 2
    assert submitter.calls[1][1].gold == 503


@pytest.mark.systems
def test_extract_gives_up_when_declining_retry(patch_session):
    patch_session(Role.GHOST, failures=["Character already created for this name"])

    result = CliRunner().invoke(cli.main, ["extract", "Wren"], input=DRAW_INPUT + "1\nn\n")

    assert result.exit_code == 1
    assert "FINAL LOCKED" not in result.output
