"""
CHIP-8 VM — Hex Keypad Input Capability

The interpreter only ever sees the Keypad interface:

    is_pressed(key)  — is key 0x0–0xF currently held?
    just_pressed()   — keys that went down since the driver last cleared

KeyState is the stock implementation. It may be fed from a background
key-capture thread, so every mutation and every read happens under one
lock; readers get copies, never the live containers.

The just-pressed list is an append-only queue between two clears. A read
remembers how much of it the reader saw, and clear_just_pressed() only
drops that observed prefix. A key that lands after the read (or while
nobody reads) survives one clear, so every press is visible to at least
one full step before it expires.
"""

import abc
import threading
from typing import List, Set


class Keypad(abc.ABC):
    """Input capability consumed by the interpreter."""

    @abc.abstractmethod
    def is_pressed(self, key: int) -> bool:
        """Return True if the given key (0x0–0xF) is currently held."""

    @abc.abstractmethod
    def just_pressed(self) -> List[int]:
        """Return keys newly pressed since the last clear, oldest first."""


class KeyState(Keypad):
    """Thread-safe held / just-pressed key tracking."""

    def __init__(self):
        self._lock = threading.Lock()
        self._held: Set[int] = set()
        self._just: List[int] = []
        self._seen = 0       # prefix of _just handed out since the last clear
        self._carried = 0    # prefix of _just that already survived a clear

    # --- Producer side (key-capture thread / tests) ---

    def press(self, key: int):
        key &= 0xF
        with self._lock:
            if key not in self._held:
                self._held.add(key)
                self._just.append(key)

    def release(self, key: int):
        with self._lock:
            self._held.discard(key & 0xF)

    def toggle(self, key: int):
        """Flip the held state of a key.

        Terminals only report key-down, so the terminal front end treats
        a second press as the release.
        """
        key &= 0xF
        with self._lock:
            if key in self._held:
                self._held.discard(key)
            else:
                self._held.add(key)
                self._just.append(key)

    def release_all(self):
        with self._lock:
            self._held.clear()

    # --- Driver side ---

    def clear_just_pressed(self):
        """Called by the driver once per interpreter step.

        Drops the keys a reader has seen plus any left over from the
        previous clear. Keys appended since the last read are kept.
        """
        with self._lock:
            del self._just[:max(self._seen, self._carried)]
            self._seen = 0
            self._carried = len(self._just)

    # --- Consumer side (interpreter / renderer) ---

    def is_pressed(self, key: int) -> bool:
        with self._lock:
            return key in self._held

    def just_pressed(self) -> List[int]:
        with self._lock:
            self._seen = len(self._just)
            return list(self._just)

    def held(self) -> Set[int]:
        with self._lock:
            return set(self._held)
