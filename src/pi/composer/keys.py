"""Keyboard input parsing for terminal applications.

Turns raw terminal sequences (legacy control bytes, CSI/SS3 escape
sequences, meta prefixes, kitty keyboard protocol and modifyOtherKeys) and
decorated key events into key identifiers such as ``"ctrl+z"`` or
``"alt+b"``. Every physical encoding of the same key yields the same
identifier, so a raw ``0x1a`` and a kitty ``ESC[122;5u`` are both
``"ctrl+z"``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

ESC = "\x1b"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

# Canonical order of modifiers inside a key id
MODIFIER_ORDER: tuple[str, ...] = ("ctrl", "shift", "alt")

LOCK_MASK = 64 + 128

CODEPOINTS: dict[str, int] = {
    "escape": 27,
    "tab": 9,
    "enter": 13,
    "space": 32,
    "backspace": 127,
    "kp_enter": 57414,
}

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[Z": "shift+tab",
}

# Shifted key mapping for symbols (shift + base key)
SHIFTED_KEY_MAP: dict[str, str] = {
    "`": "~",
    "1": "!",
    "2": "@",
    "3": "#",
    "4": "$",
    "5": "%",
    "6": "^",
    "7": "&",
    "8": "*",
    "9": "(",
    "0": ")",
    "-": "_",
    "=": "+",
    "[": "{",
    "]": "}",
    "\\": "|",
    ";": ":",
    "'": '"',
    ",": "<",
    ".": ">",
    "/": "?",
}

# Control bytes without a letter equivalent
_RAW_CTRL_SYMBOLS: dict[str, str] = {
    "\x1c": "ctrl+\\",
    "\x1d": "ctrl+]",
    "\x1e": "ctrl+^",
    "\x1f": "ctrl+-",
}

# ---------------------------------------------------------------------------
# Kitty protocol
# ---------------------------------------------------------------------------


@dataclass
class ParsedKittySequence:
    codepoint: int
    shifted_key: Optional[int]
    base_layout_key: Optional[int]
    modifier: int
    event_type: int  # 1 = press, 2 = repeat, 3 = release


# CSI u format: \x1b[<codepoint>(:<shifted_key>(:<base_layout_key>))?(;<modifier>(:<event_type>))?u
_KITTY_CSI_U_RE = re.compile(
    r"\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$"
)

# Arrows, Home/End with modifier: \x1b[1;<modifier>(:<event_type>)?[ABCDHF]
_KITTY_LETTER_RE = re.compile(r"\x1b\[1;(\d+)(?::(\d+))?([ABCDHF])$")

# Functional keys with modifier: \x1b[<number>;<modifier>(:<event_type>)?~
_KITTY_FUNCTIONAL_RE = re.compile(r"\x1b\[(\d+);(\d+)(?::(\d+))?~$")

# modifyOtherKeys: \x1b[27;<modifier>;<keycode>~
_MODIFY_OTHER_KEYS_RE = re.compile(r"\x1b\[27;(\d+);(\d+)~$")

_LETTER_TO_KEY: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

_FUNCTIONAL_NUMBER_TO_KEY: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
}

# Kitty private-use codepoints for keys that have no character
_KITTY_SPECIAL_CODEPOINTS: dict[int, str] = {
    57399: "0",
    57414: "enter",
    57417: "left",
    57418: "right",
    57419: "up",
    57420: "down",
    57423: "home",
    57424: "end",
    57426: "delete",
}

_RELEASE_PATTERNS = re.compile(r"(?::3u|;[^:]*:3~|;[^:]*:3[ABCDHF])$")


def is_key_release(data: str) -> bool:
    """Check if data is a kitty key release event."""
    return bool(_RELEASE_PATTERNS.search(data))


def parse_kitty_sequence(data: str) -> ParsedKittySequence | None:
    """Parse a kitty keyboard protocol (or xterm modified-key) sequence."""
    m = _KITTY_CSI_U_RE.match(data)
    if m:
        return ParsedKittySequence(
            codepoint=int(m.group(1)),
            shifted_key=int(m.group(2)) if m.group(2) else None,
            base_layout_key=int(m.group(3)) if m.group(3) else None,
            modifier=int(m.group(4)) if m.group(4) else 1,
            event_type=int(m.group(5)) if m.group(5) else 1,
        )
    return None


def _modifier_prefix(modifier: int) -> str:
    mod = (modifier - 1) & ~LOCK_MASK
    parts = [name for name in MODIFIER_ORDER if mod & MODIFIERS[name]]
    return "".join(f"{name}+" for name in parts)


def _printable_char(codepoint: int) -> str | None:
    if not 0 < codepoint <= 0x10FFFF:
        return None
    ch = chr(codepoint)
    return ch if ch.isprintable() else None


def _kitty_key_name(parsed: ParsedKittySequence) -> str | None:
    cp = parsed.codepoint
    for name, code in CODEPOINTS.items():
        if cp == code:
            return "enter" if name == "kp_enter" else name
    special = _KITTY_SPECIAL_CODEPOINTS.get(cp)
    if special is not None:
        return special
    ch = _printable_char(cp)
    return ch.lower() if ch is not None else None


# ---------------------------------------------------------------------------
# Key ids
# ---------------------------------------------------------------------------


def split_key_id(key_id: KeyId) -> tuple[frozenset[str], str]:
    """Split ``"ctrl+shift+a"`` into ``({"ctrl", "shift"}, "a")``.

    A trailing ``+`` is the plus key itself, so ``"ctrl++"`` is ctrl and ``+``.
    """
    if key_id == "+" or not key_id:
        return frozenset(), key_id
    if key_id.endswith("++"):
        head, base = key_id[:-2], "+"
    elif "+" in key_id:
        head, base = key_id.rsplit("+", 1)
    else:
        return frozenset(), key_id
    mods = frozenset(part.lower() for part in head.split("+") if part)
    return mods, base


def normalize_key_id(key_id: KeyId) -> KeyId:
    """Rewrite a key id with modifiers in canonical ``ctrl+shift+alt`` order."""
    mods, base = split_key_id(key_id)
    if len(base) == 1:
        base = base.lower()
    prefix = "".join(f"{name}+" for name in MODIFIER_ORDER if name in mods)
    return prefix + base


@dataclass(frozen=True)
class KeyEvent:
    """A decorated key event as delivered by a terminal backend.

    ``key`` is either a named key (``"left"``, ``"backspace"``) or the
    character the key produced.
    """

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    @property
    def key_id(self) -> KeyId:
        prefix = "".join(
            f"{name}+"
            for name, active in (("ctrl", self.ctrl), ("shift", self.shift), ("alt", self.alt))
            if active
        )
        key = self.key.lower() if len(self.key) == 1 and (self.ctrl or self.alt) else self.key
        return prefix + key


# ---------------------------------------------------------------------------
# parse_key: determine what key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyId | None:  # noqa: C901
    """Parse raw terminal input and return the key identifier, or ``None``.

    Printable characters are returned as-is (``"a"``, ``"A"``, ``"é"``).
    """
    if not data:
        return None

    # --- Kitty CSI u ---
    parsed = parse_kitty_sequence(data)
    if parsed is not None:
        name = _kitty_key_name(parsed)
        if name is None:
            return None
        prefix = _modifier_prefix(parsed.modifier)
        if prefix == "shift+" and parsed.shifted_key:
            shifted = _printable_char(parsed.shifted_key)
            if shifted is not None:
                return shifted
        return prefix + name

    # --- modifyOtherKeys ---
    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        keycode = int(m.group(2))
        name = {13: "enter", 9: "tab", 27: "escape", 127: "backspace", 32: "space"}.get(keycode)
        if name is None:
            ch = _printable_char(keycode)
            if ch is None:
                return None
            name = ch.lower()
        return _modifier_prefix(int(m.group(1))) + name

    # --- Modified arrows / home / end / functional keys ---
    m = _KITTY_LETTER_RE.match(data)
    if m:
        return _modifier_prefix(int(m.group(1))) + _LETTER_TO_KEY[m.group(3)]
    m = _KITTY_FUNCTIONAL_RE.match(data)
    if m:
        name = _FUNCTIONAL_NUMBER_TO_KEY.get(int(m.group(1)))
        if name is None:
            return None
        return _modifier_prefix(int(m.group(2))) + name

    # --- Legacy escape sequences ---
    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]

    # --- Simple single-byte keys ---
    if data == ESC:
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data == "\x7f" or data == "\x08":
        return "backspace"
    if data == "\x00":
        return "ctrl+space"
    if data in _RAW_CTRL_SYMBOLS:
        return _RAW_CTRL_SYMBOLS[data]

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == ESC:
        ch = data[1]
        if ch == ESC:
            return "alt+escape"
        if ch == "\r" or ch == "\n":
            return "alt+enter"
        if ch == "\t":
            return "alt+tab"
        if ch == " ":
            return "alt+space"
        if ch == "\x7f" or ch == "\x08":
            return "alt+backspace"
        if 1 <= ord(ch) <= 26:
            return "ctrl+alt+" + chr(ord(ch) + ord("a") - 1)
        if ch.isupper():
            return "shift+alt+" + ch.lower()
        if ch.isprintable():
            return "alt+" + ch

    # --- Plain printable character (possibly a multi-codepoint grapheme) ---
    if not data.startswith(ESC) and data.isprintable():
        return data

    return None
