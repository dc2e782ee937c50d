# tests/test_field_extractor.py

"""Tests for the ordered field locator cascade."""

import unittest

from bs4 import BeautifulSoup, Tag

from src.scrapers.field_extractor import FieldExtractor
from src.scrapers.locators import Locator

_HTML = """
<div class="card">
  <a class="link" href="/produto-1" data-id="p1">
    <img src="" data-src="https://cdn.example/p1.jpg" alt="Cafeteira Expresso 15 Bar">
    <span class="badge">Novo</span>
    <h3 class="title">  Cafeteira   Expresso
        15 Bar  </h3>
    <span class="price"><b>R$</b> 399,90</span>
  </a>
</div>
"""


def _block() -> Tag:
    soup = BeautifulSoup(_HTML, "lxml")
    block = soup.select_one("div.card")
    assert block is not None
    return block


class TestFieldExtractor(unittest.TestCase):
    """First plausible value wins; absence is never an error."""

    def test_text_locator_collapses_whitespace(self) -> None:
        value = FieldExtractor.extract(_block(), [Locator(".title")])
        self.assertEqual(value, "Cafeteira Expresso 15 Bar")

    def test_text_joins_nested_elements(self) -> None:
        value = FieldExtractor.extract(_block(), [Locator(".price")])
        self.assertEqual(value, "R$ 399,90")

    def test_first_locator_wins(self) -> None:
        value = FieldExtractor.extract(
            _block(), [Locator(".price"), Locator(".title")]
        )
        self.assertEqual(value, "R$ 399,90")

    def test_min_length_skips_fragments(self) -> None:
        """A short badge is skipped in favour of the next locator."""
        value = FieldExtractor.extract(
            _block(),
            [Locator(".badge"), Locator(".title")],
            min_length=6,
        )
        self.assertEqual(value, "Cafeteira Expresso 15 Bar")

    def test_attribute_locator(self) -> None:
        value = FieldExtractor.extract(
            _block(), [Locator("a.link", attr="href")]
        )
        self.assertEqual(value, "/produto-1")

    def test_empty_attribute_falls_through(self) -> None:
        """An empty src moves on to data-src."""
        value = FieldExtractor.extract(
            _block(),
            [Locator("img", attr="src"), Locator("img", attr="data-src")],
        )
        self.assertEqual(value, "https://cdn.example/p1.jpg")

    def test_empty_selector_reads_block_itself(self) -> None:
        soup = BeautifulSoup(_HTML, "lxml")
        link = soup.select_one("a.link")
        assert link is not None
        value = FieldExtractor.extract(link, [Locator("", attr="data-id")])
        self.assertEqual(value, "p1")

    def test_multi_valued_attribute_joined(self) -> None:
        soup = BeautifulSoup('<p><i class="a b">x</i></p>', "lxml")
        block = soup.select_one("p")
        assert block is not None
        value = FieldExtractor.extract(block, [Locator("i", attr="class")])
        self.assertEqual(value, "a b")

    def test_no_match_returns_empty(self) -> None:
        value = FieldExtractor.extract(
            _block(), [Locator(".missing"), Locator("img", attr="title")]
        )
        self.assertEqual(value, "")

    def test_invalid_selector_is_skipped(self) -> None:
        """A broken selector behaves like a non-match."""
        with self.assertLogs("dealfeed.extractor", level="WARNING"):
            value = FieldExtractor.extract(
                _block(), [Locator("div[[["), Locator(".title")]
            )
        self.assertEqual(value, "Cafeteira Expresso 15 Bar")

    def test_no_locators(self) -> None:
        self.assertEqual(FieldExtractor.extract(_block(), []), "")


if __name__ == "__main__":
    unittest.main()
