import pytest

from mangareader.utils.slug import slugify


@pytest.mark.parametrize(
    "title, expected",
    [
        ("One Piece", "one-piece"),
        ("One  Piece!!", "one-piece"),
        ("  Attack on Titan  ", "attack-on-titan"),
        ("Pokémon Adventures", "pokemon-adventures"),
        ("Vol_1 -- Part 2", "vol-1-part-2"),
        ("!!!", ""),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_slugify_is_idempotent():
    for title in ("One Piece", "Dr. STONE: Reboot", "Chainsaw Man – Part 2"):
        once = slugify(title)
        assert slugify(once) == once
