"""Fixtures for end-to-end tests over a directory of sources."""

from pathlib import Path

import pytest

_GREETER = """\
#!/usr/bin/env node
/**
 * Greets people.
 *
 * @remarks
 * Uses `console.log`.
 *
 * @beta
 */
export class Greeter {
  /**
   * Say hello to {@link Person | someone}.
   * @param name - Who to greet
   */
  greet(name: string): void {}
}
"""

_MATH = """\
/** Adds numbers. */
export const add = (a: number, b: number) => a + b;

/** Subtracts numbers. */
export function subtract(a: number, b: number): number {
  return a - b;
}
"""

_WIDGET = """\
/** A widget. */
export function Widget() {
  return <div>hi</div>;
}
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "greeter.ts").write_text(_GREETER, encoding="utf-8")
    (tmp_path / "math.ts").write_text(_MATH, encoding="utf-8")
    (tmp_path / "plain.ts").write_text("export const x = 1; // nothing here\n", encoding="utf-8")
    (tmp_path / "widget.tsx").write_text(_WIDGET, encoding="utf-8")
    (tmp_path / "broken.ts").write_bytes(b"/** caf\xe9 */\nlet a = 1;\n")
    return tmp_path
