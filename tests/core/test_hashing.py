"""Tests for content fingerprints."""

import hashlib

from codeatlas.core.hashing import HASH_LENGTH, compute_composite_hash, compute_content_hash


class TestComputeContentHash:
    def test_is_truncated_sha256(self) -> None:
        expected = hashlib.sha256(b"export const a = 1;").hexdigest()[:HASH_LENGTH]
        assert compute_content_hash("export const a = 1;") == expected

    def test_str_and_bytes_agree(self) -> None:
        assert compute_content_hash("café") == compute_content_hash("café".encode())

    def test_is_deterministic(self) -> None:
        assert compute_content_hash("x = 1\n") == compute_content_hash("x = 1\n")

    def test_single_character_change_changes_hash(self) -> None:
        """Any content difference produces a different fingerprint."""
        assert compute_content_hash("x = 1\n") != compute_content_hash("x = 2\n")
        assert compute_content_hash("x = 1\n") != compute_content_hash("x = 1")

    def test_lone_surrogate_does_not_raise(self) -> None:
        assert len(compute_content_hash("echo \udce9\n")) == HASH_LENGTH

    def test_length_and_alphabet(self) -> None:
        digest = compute_content_hash("")
        assert len(digest) == 16
        assert all(c in "0123456789abcdef" for c in digest)


class TestComputeCompositeHash:
    def test_order_matters(self) -> None:
        assert compute_composite_hash("a", "b") != compute_composite_hash("b", "a")

    def test_each_component_matters(self) -> None:
        base = compute_composite_hash("abc123", "src/a.ts:Foo")
        assert base != compute_composite_hash("abc124", "src/a.ts:Foo")
        assert base != compute_composite_hash("abc123", "src/a.ts:Bar")

    def test_is_deterministic(self) -> None:
        assert compute_composite_hash("h", "id") == compute_composite_hash("h", "id")
