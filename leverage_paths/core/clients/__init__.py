from leverage_paths.core.clients.CoinGeckoClient import CoinGeckoClient
from leverage_paths.core.clients.DefiLlamaClient import DefiLlamaClient
from leverage_paths.core.clients.EtherFiClient import EtherFiClient
from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.clients.LidoClient import LidoClient
from leverage_paths.core.clients.MerklClient import MerklClient
from leverage_paths.core.clients.MorphoClient import MorphoClient

__all__ = [
    "JsonHttpClient",
    "CoinGeckoClient",
    "DefiLlamaClient",
    "EtherFiClient",
    "LidoClient",
    "MerklClient",
    "MorphoClient",
]
