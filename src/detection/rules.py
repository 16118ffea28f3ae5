"""Code-structure rule table.

Each :class:`Rule` pairs a multiline regex over the block text with the
filename it implies: a fixed conventional name (``main.rs``,
``Cargo.toml``) or a name derived from the matched identifier.  Rules are
evaluated strictly in table order and the first one that applies wins, so
more specific shapes (entry points, manifests) sit above generic
declarations for the same language.

A rule may be restricted to one content tag (``tag``) or to a family of
tags (``tag_pattern``).  A rule with neither applies to every tag.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from src.detection.filenames import to_snake_case
from src.detection.models import Confidence, ContentTag

NameFn = Callable[[re.Match[str], str], "str | None"]


@dataclass(frozen=True)
class Rule:
    pattern: re.Pattern[str]
    confidence: Confidence
    name: str | None = None
    name_fn: NameFn | None = None
    tag: ContentTag | None = None
    tag_pattern: re.Pattern[str] | None = None

    def applies_to(self, tag: str) -> bool:
        if self.tag is not None and tag != self.tag:
            return False
        if self.tag_pattern is not None and not self.tag_pattern.match(tag):
            return False
        return True

    def evaluate(self, text: str, tag: str) -> str | None:
        """Return the implied filename, or None when the rule doesn't fire."""
        if not self.applies_to(tag):
            return None
        match = self.pattern.search(text)
        if match is None:
            return None
        if self.name_fn is not None:
            return self.name_fn(match, tag)
        return self.name


# ── Name functions ────────────────────────────────────────────


def _snake_with(extension: str) -> NameFn:
    def name_fn(match: re.Match[str], tag: str) -> str | None:
        return f"{to_snake_case(match.group(1))}.{extension}"

    return name_fn


def _component_name(match: re.Match[str], tag: str) -> str | None:
    # only PascalCase functions are components; helpers fall through
    name = match.group(1)
    if not name[:1].isupper():
        return None
    return f"{name}.{'tsx' if tag == ContentTag.TS else 'jsx'}"


def _default_export_name(match: re.Match[str], tag: str) -> str | None:
    return f"{match.group(1)}.js"


_M = re.MULTILINE
_JS_FAMILY = re.compile(r"^[jt]sx?$")


# ── Table ─────────────────────────────────────────────────────

CODE_STRUCTURE_RULES: tuple[Rule, ...] = (
    # Rust
    Rule(re.compile(r"^fn\s+main\s*\(", _M), Confidence.HIGH, name="main.rs", tag=ContentTag.RS),
    Rule(re.compile(r"^#\[\s*cfg\(test\)\s*\]", _M), Confidence.MEDIUM, name="lib.rs", tag=ContentTag.RS),
    Rule(re.compile(r"^pub\s+mod\s+", _M), Confidence.MEDIUM, name="lib.rs", tag=ContentTag.RS),
    Rule(re.compile(r"^mod\s+tests\s*\{", _M), Confidence.MEDIUM, name="lib.rs", tag=ContentTag.RS),
    Rule(
        re.compile(r"^(?:pub\s+)?struct\s+(\w+)", _M),
        Confidence.LOW,
        name_fn=_snake_with("rs"),
        tag=ContentTag.RS,
    ),
    # Python
    Rule(
        re.compile(r"""^if\s+__name__\s*==\s*['"]__main__['"]""", _M),
        Confidence.HIGH,
        name="main.py",
        tag=ContentTag.PY,
    ),
    Rule(re.compile(r"^from\s+flask\s+import", _M), Confidence.MEDIUM, name="app.py", tag=ContentTag.PY),
    Rule(re.compile(r"^from\s+django", _M), Confidence.LOW, name="views.py", tag=ContentTag.PY),
    Rule(re.compile(r"^import\s+pytest", _M), Confidence.MEDIUM, name="test_main.py", tag=ContentTag.PY),
    Rule(re.compile(r"^def\s+test_", _M), Confidence.MEDIUM, name="test_main.py", tag=ContentTag.PY),
    Rule(
        re.compile(r"^class\s+(\w+)(?:\(.*\))?:", _M),
        Confidence.LOW,
        name_fn=_snake_with("py"),
        tag=ContentTag.PY,
    ),
    # JS / TS
    Rule(
        re.compile(r"""^['"]use client['"]""", _M),
        Confidence.MEDIUM,
        name="page.tsx",
        tag_pattern=_JS_FAMILY,
    ),
    Rule(re.compile(r"""^['"]use server['"]""", _M), Confidence.MEDIUM, name="actions.ts", tag=ContentTag.JS),
    Rule(
        re.compile(r"^(?:export\s+)?(?:default\s+)?function\s+(\w+)", _M),
        Confidence.MEDIUM,
        name_fn=_component_name,
        tag_pattern=_JS_FAMILY,
    ),
    Rule(
        re.compile(r"^export\s+default\s+function\s+(\w+)", _M),
        Confidence.LOW,
        name_fn=_default_export_name,
        tag=ContentTag.JS,
    ),
    # Go
    Rule(re.compile(r"^package\s+main\b", _M), Confidence.HIGH, name="main.go", tag=ContentTag.GO),
    Rule(re.compile(r"^func\s+Test\w+\s*\(", _M), Confidence.MEDIUM, name="main_test.go", tag=ContentTag.GO),
    # Config / manifests
    Rule(re.compile(r"^\[package\]\s*$", _M), Confidence.HIGH, name="Cargo.toml", tag=ContentTag.TOML),
    Rule(re.compile(r"^\[dependencies\]", _M), Confidence.MEDIUM, name="Cargo.toml", tag=ContentTag.TOML),
    Rule(re.compile(r"^\[tool\.poetry\]", _M), Confidence.HIGH, name="pyproject.toml", tag=ContentTag.TOML),
    Rule(re.compile(r"^\[build-system\]", _M), Confidence.MEDIUM, name="pyproject.toml", tag=ContentTag.TOML),
    Rule(
        re.compile(r'^\{\s*"name"\s*:\s*"[^"]+"\s*,\s*"version"', _M),
        Confidence.HIGH,
        name="package.json",
        tag=ContentTag.JSON,
    ),
    Rule(re.compile(r'^\{\s*"compilerOptions"', _M), Confidence.HIGH, name="tsconfig.json", tag=ContentTag.JSON),
    Rule(re.compile(r'"manifest_version"\s*:\s*\d', _M), Confidence.HIGH, name="manifest.json", tag=ContentTag.JSON),
    Rule(re.compile(r'^\{\s*"scripts"\s*:', _M), Confidence.MEDIUM, name="package.json", tag=ContentTag.JSON),
    Rule(
        re.compile(r"""^version:\s*['"]?\d""", _M),
        Confidence.LOW,
        name="docker-compose.yml",
        tag=ContentTag.YAML,
    ),
    Rule(re.compile(r"^services:\s*$", _M), Confidence.MEDIUM, name="docker-compose.yml", tag=ContentTag.YAML),
    Rule(re.compile(r"^FROM\s+\w+", _M), Confidence.HIGH, name="Dockerfile"),
    Rule(
        re.compile(r"^apiVersion:\s*apps/v1", _M),
        Confidence.MEDIUM,
        name="deployment.yaml",
        tag=ContentTag.YAML,
    ),
    Rule(re.compile(r"^@tailwind", _M), Confidence.MEDIUM, name="globals.css", tag=ContentTag.CSS),
    # Markup (anchored to the very start of the block)
    Rule(re.compile(r"^<!DOCTYPE html>", re.IGNORECASE), Confidence.MEDIUM, name="index.html", tag=ContentTag.HTML),
    Rule(re.compile(r"^<html", re.IGNORECASE), Confidence.LOW, name="index.html", tag=ContentTag.HTML),
    # Shell
    Rule(re.compile(r"^#!/usr/bin/env\s+bash", _M), Confidence.MEDIUM, name="script.sh", tag=ContentTag.SH),
    Rule(re.compile(r"^#!/bin/bash", _M), Confidence.MEDIUM, name="script.sh", tag=ContentTag.SH),
    Rule(re.compile(r"^#!/usr/bin/env\s+sh", _M), Confidence.MEDIUM, name="script.sh", tag=ContentTag.SH),
    Rule(re.compile(r"^#!/usr/bin/env\s+zsh", _M), Confidence.MEDIUM, name="script.zsh", tag=ContentTag.SH),
    # CSS
    Rule(re.compile(r"^:root\s*\{", _M), Confidence.LOW, name="styles.css", tag=ContentTag.CSS),
    # SQL
    Rule(re.compile(r"^CREATE\s+TABLE", _M | re.IGNORECASE), Confidence.MEDIUM, name="schema.sql", tag=ContentTag.SQL),
    Rule(re.compile(r"^CREATE\s+DATABASE", _M | re.IGNORECASE), Confidence.MEDIUM, name="init.sql", tag=ContentTag.SQL),
    Rule(re.compile(r"^INSERT\s+INTO", _M | re.IGNORECASE), Confidence.LOW, name="seed.sql", tag=ContentTag.SQL),
)


def match_rules(
    text: str,
    tag: str,
    rules: Sequence[Rule] = CODE_STRUCTURE_RULES,
) -> tuple[str, Confidence] | None:
    """Return ``(filename, confidence)`` from the first rule that fires."""
    for rule in rules:
        filename = rule.evaluate(text, tag)
        if filename:
            return filename, rule.confidence
    return None
