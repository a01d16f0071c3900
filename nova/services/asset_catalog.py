"""Static catalogue of the assets the gateway supports.

The catalogue is fixed at import time; it drives the ``/api/market/assets``
listing and decides which symbols get a detail page.  Prices for symbols
outside the catalogue can still be resolved, the catalogue just has no
metadata for them.
"""

from __future__ import annotations

from nova.models.market import Asset
from nova.utils.errors import AssetNotFoundError


def _asset(
    symbol: str,
    name: str,
    blockchain: str,
    categories: list[str],
    description: str,
) -> Asset:
    return Asset(
        symbol=symbol,
        name=name,
        blockchain=blockchain,
        categories=categories,
        description=description,
        logo=f"/static/images/assets/{symbol.lower()}.svg",
    )


SUPPORTED_ASSETS: tuple[Asset, ...] = (
    _asset(
        "BTC", "Bitcoin", "Bitcoin",
        ["CRYPTO", "STORE_OF_VALUE", "CURRENCY"],
        "Bitcoin is the first decentralized cryptocurrency.",
    ),
    _asset(
        "ETH", "Ethereum", "Ethereum",
        ["CRYPTO", "SMART_CONTRACT_PLATFORM", "LAYER_1"],
        "Ethereum is a decentralized platform that runs smart contracts.",
    ),
    _asset(
        "BNB", "Binance Coin", "Binance Chain",
        ["CRYPTO", "EXCHANGE_TOKEN", "SMART_CONTRACT_PLATFORM", "LAYER_1"],
        "Binance Coin is the native token of the Binance ecosystem.",
    ),
    _asset(
        "SOL", "Solana", "Solana",
        ["CRYPTO", "SMART_CONTRACT_PLATFORM", "LAYER_1"],
        "Solana is a high-performance blockchain supporting builders around the world.",
    ),
    _asset(
        "ADA", "Cardano", "Cardano",
        ["CRYPTO", "SMART_CONTRACT_PLATFORM", "LAYER_1"],
        "Cardano is a proof-of-stake blockchain platform.",
    ),
    _asset(
        "DOT", "Polkadot", "Polkadot",
        ["CRYPTO", "INTEROPERABILITY", "LAYER_0"],
        "Polkadot is a platform that allows diverse blockchains to transfer "
        "messages and value.",
    ),
    _asset(
        "AVAX", "Avalanche", "Avalanche",
        ["CRYPTO", "SMART_CONTRACT_PLATFORM", "LAYER_1"],
        "Avalanche is a layer one blockchain that functions as a platform for "
        "decentralized applications.",
    ),
    _asset(
        "MATIC", "Polygon", "Polygon",
        ["CRYPTO", "SCALING_SOLUTION", "LAYER_2"],
        "Polygon is a protocol and a framework for building and connecting "
        "Ethereum-compatible blockchain networks.",
    ),
    _asset(
        "LINK", "Chainlink", "Ethereum",
        ["CRYPTO", "ORACLE", "DEFI"],
        "Chainlink is a decentralized oracle network that provides real-world "
        "data to smart contracts.",
    ),
    _asset(
        "UNI", "Uniswap", "Ethereum",
        ["CRYPTO", "DEX", "DEFI"],
        "Uniswap is a decentralized protocol for automated liquidity provision "
        "on Ethereum.",
    ),
)

# Display names for well-known symbols that are not in the catalogue.
_EXTRA_NAMES: dict[str, str] = {
    "XRP": "XRP",
    "DOGE": "Dogecoin",
    "SHIB": "Shiba Inu",
    "LTC": "Litecoin",
    "ATOM": "Cosmos",
}


class AssetCatalog:
    """Read-only lookup and pagination over the supported assets."""

    def __init__(self, assets: tuple[Asset, ...] | list[Asset] = SUPPORTED_ASSETS) -> None:
        self._assets = tuple(assets)
        self._by_symbol = {asset.symbol: asset for asset in self._assets}

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol.upper() in self._by_symbol

    def list_assets(
        self,
        category: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Asset], int]:
        """Return one page of assets and the total number matching *category*.

        The category match is case-insensitive.  ``total`` counts all matches,
        not just the returned page.
        """
        matches = list(self._assets)
        if category:
            wanted = category.upper()
            matches = [asset for asset in matches if wanted in asset.categories]
        offset = max(offset, 0)
        limit = max(limit, 0)
        return matches[offset : offset + limit], len(matches)

    def get(self, symbol: str) -> Asset:
        """Return the catalogue entry for *symbol*.

        Raises
        ------
        AssetNotFoundError
            If *symbol* is not in the catalogue.
        """
        asset = self._by_symbol.get(symbol.upper())
        if asset is None:
            raise AssetNotFoundError(symbol)
        return asset

    def name_for(self, symbol: str) -> str:
        upper = symbol.upper()
        asset = self._by_symbol.get(upper)
        if asset is not None:
            return asset.name
        return _EXTRA_NAMES.get(upper, upper)

    def categories(self) -> list[str]:
        """Return every category used in the catalogue, sorted."""
        return sorted({category for asset in self._assets for category in asset.categories})
