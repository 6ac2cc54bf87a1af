"""Tests for extension categorization."""

from __future__ import annotations

import pytest

from extguard.scanner.categorizer import categorize_extension
from extguard.scanner.models import ExtensionCategory, ExtensionManifest


def _manifest(**kwargs) -> ExtensionManifest:
    base = {"name": "ext", "publisher": "someone", "version": "1.0.0"}
    base.update(kwargs)
    return ExtensionManifest(**base)


@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({"categories": ("Themes",)}, ExtensionCategory.THEME),
        (
            {"contributes": {"themes": [{}], "colors": []}},
            ExtensionCategory.THEME,
        ),
        (
            {"contributes": {"grammars": [{}], "commands": [{}, {}]}},
            ExtensionCategory.LANGUAGE,
        ),
        ({"publisher": "ms-vscode-remote", "name": "remote-ssh"}, ExtensionCategory.REMOTE_DEVELOPMENT),
        ({"keywords": ("copilot",)}, ExtensionCategory.AI_ASSISTANT),
        ({"categories": ("Machine Learning",)}, ExtensionCategory.AI_ASSISTANT),
        ({"display_name": "AI Pair Programmer"}, ExtensionCategory.AI_ASSISTANT),
        ({"publisher": "golang", "name": "go"}, ExtensionCategory.LANGUAGE_SUPPORT),
        ({"categories": ("Programming Languages",)}, ExtensionCategory.LANGUAGE_SUPPORT),
        ({"contributes": {"scm": {}}}, ExtensionCategory.SCM),
        ({"categories": ("Debuggers",)}, ExtensionCategory.DEBUGGER),
        ({"display_name": "ESLint"}, ExtensionCategory.LINTER),
        ({"categories": ("Formatters",)}, ExtensionCategory.LINTER),
        ({"publisher": "humao", "display_name": "REST Client"}, ExtensionCategory.DEVELOPER_TOOLS),
        ({"display_name": "Jest Runner"}, ExtensionCategory.TESTING),
        ({"publisher": "ms-toolsai", "name": "jupyter"}, ExtensionCategory.NOTEBOOK),
        ({"display_name": "Plain Utility"}, ExtensionCategory.GENERAL),
    ],
)
def test_categories(kwargs, expected):
    assert categorize_extension(_manifest(**kwargs)) is expected


def test_theme_with_extra_contributions_is_not_theme():
    manifest = _manifest(contributes={"themes": [{}], "commands": [{}]})
    assert categorize_extension(manifest) is not ExtensionCategory.THEME


def test_language_with_many_commands_is_not_language():
    manifest = _manifest(contributes={"languages": [{}], "commands": [{}] * 5})
    assert categorize_extension(manifest) is not ExtensionCategory.LANGUAGE


def test_remote_checked_before_language_support():
    manifest = _manifest(publisher="ms-vscode-remote", name="remote-containers")
    assert categorize_extension(manifest) is ExtensionCategory.REMOTE_DEVELOPMENT


def test_ai_keywords_match_whole_words():
    manifest = _manifest(display_name="Container Tools", description="Manage images")
    assert categorize_extension(manifest) is ExtensionCategory.GENERAL


def test_empty_manifest():
    manifest = ExtensionManifest(name="", publisher="", version="")
    assert categorize_extension(manifest) is ExtensionCategory.GENERAL
