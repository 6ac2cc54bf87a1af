"""Extension categorizer — infers what an extension is for from its manifest.

The category decides which findings count as expected behavior. Checks run
in a fixed order and the first match wins; remote development is checked
before language support because ``ms-vscode-remote`` contains ``ms-vscode``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from extguard.scanner.models import ExtensionCategory, ExtensionManifest

LANGUAGE_SUPPORT_PUBLISHERS = (
    "ms-python",
    "ms-vscode",
    "golang",
    "rust-lang",
    "microsoft",
    "redhat",
    "oracle",
    "julialang",
    "haskell",
    "zigtools",
    "elixir-lsp",
    "dart-code",
    "scala-lang",
    "vscjava",
    "crystal-lang-tools",
    "nim-lang",
    "vlang-vscode",
)

DEVELOPER_TOOL_PUBLISHERS = frozenset(
    {
        "formulahendry",
        "rangav",
        "humao",
        "ritwickdey",
        "techer",
        "negokaz",
        "qwtel",
        "hediet",
        "mtxr",
        "cweijan",
    }
)

DEVELOPER_TOOL_KEYWORDS = (
    "code runner",
    "coderunner",
    "run code",
    "execute code",
    "run script",
    "script runner",
    "rest client",
    "api client",
    "http client",
    "thunder client",
    "postman",
    "insomnia",
    "api tester",
    "http request",
    "live server",
    "liveserver",
    "live preview",
    "browser sync",
    "browsersync",
    "local server",
    "dev server",
    "http server",
    "terminal",
    "shell",
    "integrated terminal",
    "task runner",
    "npm scripts",
    "gulp",
    "grunt",
    "database client",
    "sql client",
    "mongodb client",
    "redis client",
)

REMOTE_DEV_PUBLISHERS = frozenset({"ms-vscode-remote", "ms-azuretools"})

REMOTE_DEV_KEYWORDS = (
    "remote-ssh",
    "remote ssh",
    "remote - ssh",
    "dev container",
    "devcontainer",
    "dev-container",
    "docker container",
    "wsl",
    "windows subsystem",
    "remote development",
    "remote explorer",
    "ssh remote",
    "ssh connection",
    "container development",
    "codespace",
    "github codespaces",
    "tunnel",
    "remote tunnels",
)

TESTING_PUBLISHERS = frozenset({"hbenl", "firsttris", "orta", "ms-playwright"})

TESTING_KEYWORDS = (
    "test runner",
    "test explorer",
    "test adapter",
    "jest runner",
    "mocha test",
    "pytest",
    "vitest",
    "karma",
    "jasmine",
    "cypress",
    "playwright",
    "selenium",
    "unit test",
    "integration test",
    "e2e test",
    "end-to-end test",
    "test coverage",
    "code coverage",
)

NOTEBOOK_PUBLISHERS = frozenset({"ms-toolsai"})

NOTEBOOK_KEYWORDS = (
    "jupyter",
    "notebook",
    "ipynb",
    "kernel",
    "jupyter notebook",
    "jupyter lab",
    "ipython",
    "data science",
    "interactive python",
)

AI_KEYWORDS = (
    "copilot",
    "ai",
    "gpt",
    "llm",
    "chatbot",
    "assistant",
    "autocomplete",
    "code completion",
    "machine learning",
    "neural",
    "openai",
    "anthropic",
    "gemini",
    "claude",
    "codeium",
    "tabnine",
    "kilo",
    "continue",
    "cursor",
    "supermaven",
    "aider",
    "codestral",
    "mistral",
    "deepseek",
    "qwen",
    "sourcery",
    "codewhisperer",
    "amazon q",
    "bito",
    "blackbox",
    "codegpt",
    "cody",
)

# Single words match on word boundaries ("continue" must not hit "container")
_AI_WORD_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(kw)}\b", re.IGNORECASE)
    for kw in AI_KEYWORDS
    if " " not in kw
)
_AI_PHRASES = tuple(kw for kw in AI_KEYWORDS if " " in kw)

_THEME_KEYS = frozenset({"themes", "iconThemes", "colors"})
_MAX_LANGUAGE_COMMANDS = 3


def categorize_extension(manifest: ExtensionManifest) -> ExtensionCategory:
    """Infer the category of an extension. Pure; never raises."""
    categories = {c.lower() for c in manifest.categories}
    contributes = manifest.contributes
    publisher = manifest.publisher.lower()
    display_name = manifest.display_name.lower()
    text = " ".join(
        (display_name, manifest.description.lower(), manifest.name.lower())
    )

    if categories & {"themes", "icon themes"} or _is_theme_only(contributes):
        return ExtensionCategory.THEME

    if _is_language(contributes):
        return ExtensionCategory.LANGUAGE

    if publisher in REMOTE_DEV_PUBLISHERS or _contains_any(text, REMOTE_DEV_KEYWORDS):
        return ExtensionCategory.REMOTE_DEVELOPMENT

    if _is_ai_assistant(categories, manifest.keywords, text):
        return ExtensionCategory.AI_ASSISTANT

    if (
        any(p in publisher for p in LANGUAGE_SUPPORT_PUBLISHERS)
        or "programming languages" in categories
    ):
        return ExtensionCategory.LANGUAGE_SUPPORT

    if "scm providers" in categories or "scm" in contributes:
        return ExtensionCategory.SCM

    if "debuggers" in categories or "debuggers" in contributes:
        return ExtensionCategory.DEBUGGER

    if categories & {"linters", "formatters"} or _contains_any(
        display_name, ("lint", "format", "prettier", "eslint")
    ):
        return ExtensionCategory.LINTER

    if publisher in DEVELOPER_TOOL_PUBLISHERS or _contains_any(
        text, DEVELOPER_TOOL_KEYWORDS
    ):
        return ExtensionCategory.DEVELOPER_TOOLS

    if (
        publisher in TESTING_PUBLISHERS
        or "testing" in categories
        or _contains_any(text, TESTING_KEYWORDS)
    ):
        return ExtensionCategory.TESTING

    if (
        publisher in NOTEBOOK_PUBLISHERS
        or "notebooks" in categories
        or "notebooks" in contributes
        or "notebookRenderer" in contributes
        or _contains_any(text, NOTEBOOK_KEYWORDS)
    ):
        return ExtensionCategory.NOTEBOOK

    return ExtensionCategory.GENERAL


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


def _is_theme_only(contributes: dict) -> bool:
    keys = set(contributes)
    if not keys & {"themes", "iconThemes"}:
        return False
    return not keys - _THEME_KEYS


def _is_language(contributes: dict) -> bool:
    if "grammars" not in contributes and "languages" not in contributes:
        return False
    commands = contributes.get("commands")
    return not (isinstance(commands, list) and len(commands) > _MAX_LANGUAGE_COMMANDS)


def _is_ai_assistant(
    categories: set[str], keywords: Iterable[str], text: str
) -> bool:
    if categories & {"machine learning", "data science"}:
        return True
    searchable = " ".join([*(k.lower() for k in keywords), text])
    if _contains_any(searchable, _AI_PHRASES):
        return True
    return any(p.search(searchable) for p in _AI_WORD_PATTERNS)
