# tests/test_snapshot_scraper.py

"""Tests for the published products.json snapshot source."""

import json
import unittest
from unittest.mock import MagicMock, patch

from src.config.settings import Settings
from src.scrapers.base_scraper import SourceUnavailableError
from src.scrapers.snapshot_scraper import SnapshotScraper, parse_snapshot

_URL = "https://example.com/products.json"

_DOCUMENT = {
    "lastUpdate": "01/01/2026 10:00:00",
    "products": [
        {
            "title": "Fone Bluetooth TWS",
            "price": "R$ 49,90",
            "image": "https://cf.shopee.com.br/file/abc",
            "url": "https://shopee.com.br/fone-i.1.2",
            "discount": "-40%",
        },
        {
            "title": "Echo Dot 5 Geracao",
            "price": "R$ 284,05",
            "url": "https://www.amazon.com.br/dp/B09B8XJDW5",
            "source": "amazon",
        },
        {
            "title": "Sem url nenhuma",
            "price": "R$ 1,00",
        },
        "not a product",
    ],
}


def _response(text: str, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


@patch("src.scrapers.base_scraper.curl_requests.Session")
class TestParse(unittest.TestCase):
    """Normalisation of snapshot products."""

    def test_valid_products_kept(
        self, mock_session_cls: MagicMock,
    ) -> None:
        records = SnapshotScraper(Settings.SNAPSHOT_SOURCE).parse(_DOCUMENT)
        self.assertEqual(len(records), 2)

    def test_untagged_products_go_to_affiliate_source(
        self, mock_session_cls: MagicMock,
    ) -> None:
        records = SnapshotScraper(Settings.SNAPSHOT_SOURCE).parse(_DOCUMENT)
        self.assertEqual(records[0].source, Settings.AFFILIATE_SOURCE)
        self.assertEqual(records[1].source, "amazon")

    def test_unknown_tag_falls_back(
        self, mock_session_cls: MagicMock,
    ) -> None:
        data = {
            "products": [
                {
                    "title": "Produto de outra loja",
                    "url": "https://loja.example/p/1",
                    "source": "lojaX",
                }
            ]
        }
        records = SnapshotScraper(Settings.SNAPSHOT_SOURCE).parse(data)
        self.assertEqual(records[0].source, Settings.AFFILIATE_SOURCE)

    def test_missing_products_array(
        self, mock_session_cls: MagicMock,
    ) -> None:
        scraper = SnapshotScraper(Settings.SNAPSHOT_SOURCE)
        self.assertEqual(scraper.parse({}), [])
        self.assertEqual(scraper.parse({"products": "x"}), [])

    def test_capped_at_feed_maximum(
        self, mock_session_cls: MagicMock,
    ) -> None:
        data = {
            "products": [
                {"title": f"Produto numero {i}", "url": f"https://a.b/{i}"}
                for i in range(Settings.MAX_FEED_RECORDS + 10)
            ]
        }
        records = SnapshotScraper(Settings.SNAPSHOT_SOURCE).parse(data)
        self.assertEqual(len(records), Settings.MAX_FEED_RECORDS)



class TestParseSnapshot(unittest.TestCase):
    """Snapshot parsing without a scraper or session."""

    def test_parses_local_document(self) -> None:
        records = parse_snapshot(_DOCUMENT)
        self.assertEqual(
            [r.source for r in records],
            [Settings.AFFILIATE_SOURCE, "amazon"],
        )

    def test_own_tag_is_not_a_platform(self) -> None:
        """Products tagged with the snapshot id go to the affiliate source."""
        data = {
            "products": [
                {
                    "title": "Produto reexportado",
                    "url": "https://shopee.com.br/p/1",
                    "source": "snapshot",
                }
            ]
        }
        records = parse_snapshot(data)
        self.assertEqual(records[0].source, Settings.AFFILIATE_SOURCE)

@patch("src.scrapers.base_scraper.curl_requests.Session")
class TestScrape(unittest.TestCase):
    """Download handling."""

    def test_unconfigured_returns_empty(
        self, mock_session_cls: MagicMock,
    ) -> None:
        with patch.object(Settings, "SNAPSHOT_URL", ""):
            records = SnapshotScraper(Settings.SNAPSHOT_SOURCE).scrape()
        self.assertEqual(records, [])
        mock_session_cls.return_value.get.assert_not_called()

    def test_downloads_and_parses(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.get.return_value = _response(json.dumps(_DOCUMENT))

        with patch.object(Settings, "SNAPSHOT_URL", _URL):
            records = SnapshotScraper(Settings.SNAPSHOT_SOURCE).scrape()
        self.assertEqual(len(records), 2)
        self.assertEqual(mock_session.get.call_args.args[0], _URL)

    def test_invalid_json_raises(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.get.return_value = _response("[not json")

        with patch.object(Settings, "SNAPSHOT_URL", _URL):
            with self.assertRaises(SourceUnavailableError):
                SnapshotScraper(Settings.SNAPSHOT_SOURCE).scrape()

    def test_non_object_root_raises(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.get.return_value = _response("[1, 2]")

        with patch.object(Settings, "SNAPSHOT_URL", _URL):
            with self.assertRaises(SourceUnavailableError):
                SnapshotScraper(Settings.SNAPSHOT_SOURCE).scrape()

    def test_unreachable_raises(
        self, mock_session_cls: MagicMock,
    ) -> None:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.get.return_value = _response("", status=404)

        with patch.object(Settings, "SNAPSHOT_URL", _URL):
            with self.assertRaises(SourceUnavailableError):
                SnapshotScraper(Settings.SNAPSHOT_SOURCE).scrape()


if __name__ == "__main__":
    unittest.main()
