"""Tests for the filename codec."""

from pressroom.services.filenames import (
    decode_filename,
    encode_filename,
    is_post_filename,
)
from pressroom.services.identity import new_id

POST_ID = "01JNZ8W2M4T6Y8A0C2E4G6J8KM"


def test_encode_canonical():
    assert encode_filename(POST_ID, "hello-world") == f"{POST_ID}-hello-world.md"


def test_decode_canonical():
    decoded = decode_filename(f"{POST_ID}-hello-world.md")
    assert decoded.id == POST_ID
    assert decoded.slug == "hello-world"
    assert not decoded.is_legacy


def test_decode_round_trips_generated_ids():
    post_id = new_id()
    decoded = decode_filename(encode_filename(post_id, "한글-제목"))
    assert (decoded.id, decoded.slug) == (post_id, "한글-제목")


def test_decode_legacy_plain_slug():
    decoded = decode_filename("my-first-post.md")
    assert decoded.id is None
    assert decoded.slug == "my-first-post"
    assert decoded.is_legacy


def test_decode_legacy_title_with_spaces():
    decoded = decode_filename("My First Post.md")
    assert decoded.is_legacy
    assert decoded.slug == "My First Post"


def test_decode_id_without_slug_is_legacy():
    assert decode_filename(f"{POST_ID}.md").is_legacy
    assert decode_filename(f"{POST_ID}-.md").is_legacy


def test_decode_wrong_separator_is_legacy():
    decoded = decode_filename(f"{POST_ID}_hello.md")
    assert decoded.is_legacy
    assert decoded.slug == f"{POST_ID}_hello"


def test_decode_lowercase_id_prefix_is_legacy():
    name = f"{POST_ID.lower()}-hello.md"
    assert decode_filename(name).is_legacy


def test_decode_never_raises_on_odd_input():
    for name in ["", ".md", "-.md", "no-suffix", "a" * 300 + ".md"]:
        decoded = decode_filename(name)
        assert decoded.is_legacy


def test_is_post_filename():
    assert is_post_filename("post.md")
    assert not is_post_filename("post.txt")
    assert not is_post_filename(".hidden.md")
    assert not is_post_filename(".tmp123.tmp")
