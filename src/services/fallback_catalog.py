# src/services/fallback_catalog.py

"""Static example deals served when live extraction falls short."""

import logging
from datetime import datetime, timezone

from src.filters.affiliate_rewriter import AffiliateRewriter
from src.models.record import Record

logger = logging.getLogger("dealfeed.fallback")

# Hand-authored examples, one block per source.
_CATALOG_ENTRIES: dict[str, list[dict[str, str]]] = {
    "shopee": [
        {
            "title": "Smartphone Android 128GB Tela 6.5 Dual Chip",
            "price": "R$ 899,90",
            "image": "https://via.placeholder.com/200x200?text=Smartphone",
            "url": "https://shopee.com.br/Smartphone-Android-128GB-i.100001.200001",
            "discount": "50% OFF",
        },
        {
            "title": "Fone de Ouvido Bluetooth TWS com Case Carregador",
            "price": "R$ 89,90",
            "image": "https://via.placeholder.com/200x200?text=Fone",
            "url": "https://shopee.com.br/Fone-Bluetooth-TWS-i.100001.200002",
            "discount": "30% OFF",
        },
        {
            "title": "Power Bank 10000mAh Carregamento Rapido USB C",
            "price": "R$ 45,90",
            "image": "https://via.placeholder.com/200x200?text=Power+Bank",
            "url": "https://shopee.com.br/Power-Bank-10000mAh-i.100001.200003",
            "discount": "25% OFF",
        },
        {
            "title": "Kit 3 Camisetas Basicas Algodao Masculina",
            "price": "R$ 59,90",
            "image": "https://via.placeholder.com/200x200?text=Camisetas",
            "url": "https://shopee.com.br/Kit-3-Camisetas-i.100001.200004",
            "discount": "40% OFF",
        },
    ],
    "mercadolivre": [
        {
            "title": "Smart TV LED 43 Full HD com Wifi Integrado",
            "price": "R$ 1.699,00",
            "image": "https://via.placeholder.com/200x200?text=Smart+TV",
            "url": "https://www.mercadolivre.com.br/smart-tv-43-full-hd/p/MLB100001",
            "discount": "18% OFF",
        },
        {
            "title": "Air Fryer Fritadeira Eletrica 4L Antiaderente",
            "price": "R$ 329,90",
            "image": "https://via.placeholder.com/200x200?text=Air+Fryer",
            "url": "https://www.mercadolivre.com.br/air-fryer-4l/p/MLB100002",
            "discount": "35% OFF",
        },
        {
            "title": "Tenis Esportivo Corrida Masculino Amortecimento",
            "price": "R$ 149,90",
            "image": "https://via.placeholder.com/200x200?text=Tenis",
            "url": "https://www.mercadolivre.com.br/tenis-corrida/p/MLB100003",
            "discount": "",
        },
    ],
    "amazon": [
        {
            "title": "Echo Dot 5 Geracao Smart Speaker com Alexa",
            "price": "R$ 284,05",
            "image": "https://via.placeholder.com/200x200?text=Echo+Dot",
            "url": "https://www.amazon.com.br/dp/B09B8XJDW5",
            "discount": "-25%",
        },
        {
            "title": "Kindle 11 Geracao 16GB Tela Antirreflexo",
            "price": "R$ 474,05",
            "image": "https://via.placeholder.com/200x200?text=Kindle",
            "url": "https://www.amazon.com.br/dp/B09SWTG9GF",
            "discount": "-15%",
        },
        {
            "title": "Mouse Sem Fio Logitech M170 Design Ambidestro",
            "price": "R$ 59,90",
            "image": "https://via.placeholder.com/200x200?text=Mouse",
            "url": "https://www.amazon.com.br/dp/B01BNUHLF4",
            "discount": "",
        },
    ],
    "magalu": [
        {
            "title": "Geladeira Frost Free Duplex 410L Inox",
            "price": "R$ 3.299,00",
            "image": "https://via.placeholder.com/200x200?text=Geladeira",
            "url": "https://www.magazineluiza.com.br/geladeira-frost-free-410l/p/100001/",
            "discount": "20% OFF",
        },
        {
            "title": "Notebook 15.6 Intel Core i5 8GB SSD 512GB",
            "price": "R$ 2.999,00",
            "image": "https://via.placeholder.com/200x200?text=Notebook",
            "url": "https://www.magazineluiza.com.br/notebook-core-i5-8gb/p/100002/",
            "discount": "12% OFF",
        },
        {
            "title": "Liquidificador 1200W 12 Velocidades com Filtro",
            "price": "R$ 139,90",
            "image": "https://via.placeholder.com/200x200?text=Liquidificador",
            "url": "https://www.magazineluiza.com.br/liquidificador-1200w/p/100003/",
            "discount": "",
        },
    ],
}


class FallbackCatalog:
    """Immutable set of example records, affiliate-rewritten once."""

    def __init__(
        self,
        entries: dict[str, list[dict[str, str]]] | None = None,
        rewriter: AffiliateRewriter | None = None,
    ) -> None:
        self._rewriter = rewriter or AffiliateRewriter()
        built_at = datetime.now(timezone.utc)
        raw = entries if entries is not None else _CATALOG_ENTRIES
        records = [
            Record(
                title=item["title"],
                price=item["price"],
                url=item["url"],
                source=source_id,
                image=item.get("image", ""),
                discount=item.get("discount", ""),
                fetched_at=built_at,
            )
            for source_id, items in raw.items()
            for item in items
        ]
        self._records: tuple[Record, ...] = tuple(
            self._rewriter.rewrite_all(records)
        )
        logger.debug(
            "Fallback catalog built with %d records", len(self._records)
        )

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> tuple[Record, ...]:
        return self._records
