from typing import Dict, Optional

# User-facing ticker -> ALEX token id
SYMBOL_TO_TOKEN_ID: Dict[str, str] = {
    'STX': 'token-wstx',
    'ALEX': 'age000-governance-token',
    'ABTC': 'token-abtc',
    'AUSD': 'token-susdt',
    'USDA': 'token-susdt',  # Legacy name for aUSD
    'SBTC': 'token-abtc',  # sBTC quotes through aBTC on ALEX
}

# ALEX token id -> display symbol
TOKEN_ID_TO_SYMBOL: Dict[str, str] = {
    'token-wstx': 'STX',
    'age000-governance-token': 'ALEX',
    'token-abtc': 'aBTC',
    'token-susdt': 'aUSD',
}


class SymbolResolver:
    """Maps ticker symbols to canonical token ids and back.

    Anything missing from the tables is passed through unchanged, so a raw
    token id can be used wherever a symbol is expected.
    """

    def __init__(
            self,
            aliases: Optional[Dict[str, str]] = None,
            display_symbols: Optional[Dict[str, str]] = None
    ):
        self.aliases = {k.upper(): v for k, v in (aliases or SYMBOL_TO_TOKEN_ID).items()}
        self.display_symbols = dict(display_symbols or TOKEN_ID_TO_SYMBOL)

    def to_canonical_id(self, symbol: str) -> str:
        return self.aliases.get(symbol.upper(), symbol)

    def to_display_symbol(self, canonical_id: str) -> str:
        return self.display_symbols.get(canonical_id, canonical_id)

    def is_known_id(self, canonical_id: str) -> bool:
        return canonical_id in self.display_symbols
