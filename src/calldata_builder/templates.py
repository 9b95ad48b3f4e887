"""Built-in call templates for common contract interactions."""

from __future__ import annotations

import copy

from calldata_builder.errors import UnknownTemplateError
from calldata_builder.schema import CallTemplate

_TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
_NFT = "0xbc4ca0eda7647a8ab7c2061c2e118a18a936f13d"
_ROUTER = "0xe592427a0aece92de3edee1f18e0157c05861564"
_WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
_ALICE = "0x1111111111111111111111111111111111111111"
_BOB = "0x2222222222222222222222222222222222222222"
_STORAGE = "0x3333333333333333333333333333333333333333"
_DISPERSE = "0xd152f549545093347a162dce210e7293f1452150"

EXAMPLE_TEMPLATES: dict[str, CallTemplate] = {
    "erc20-transfer": {
        "name": "transfer",
        "description": "Transfer ERC20 tokens to another address",
        "target": _TOKEN,
        "inputs": [
            {"name": "to", "type": "address", "value": _ALICE},
            {"name": "amount", "type": "uint256", "value": "1000000000000000000"},
        ],
    },
    "erc20-approve": {
        "name": "approve",
        "description": "Approve another address to spend your tokens",
        "target": _TOKEN,
        "inputs": [
            {"name": "spender", "type": "address", "value": _ROUTER},
            {"name": "amount", "type": "uint256", "value": "1000000000000000000"},
        ],
    },
    "erc721-transfer-from": {
        "name": "transferFrom",
        "description": "Transfer an NFT to another address",
        "target": _NFT,
        "inputs": [
            {"name": "from", "type": "address", "value": _ALICE},
            {"name": "to", "type": "address", "value": _BOB},
            {"name": "tokenId", "type": "uint256", "value": "1"},
        ],
    },
    "storage-set": {
        "name": "set",
        "description": "Set a value in a simple storage contract",
        "target": _STORAGE,
        "inputs": [
            {"name": "value", "type": "uint256", "value": "42"},
        ],
    },
    "disperse-ether": {
        "name": "disperseEther",
        "description": "Send native currency to several recipients in one call",
        "target": _DISPERSE,
        "inputs": [
            {"name": "recipients", "type": "address[]", "value": [_ALICE, _BOB]},
            {"name": "values", "type": "uint256[]", "value": ["1000", "2000"]},
        ],
    },
    "swap-exact-input-single": {
        "name": "exactInputSingle",
        "description": "Swap an exact input amount through a single pool (struct argument)",
        "target": _ROUTER,
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "deadline", "type": "uint256"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
                "value": {
                    "tokenIn": _TOKEN,
                    "tokenOut": _WETH,
                    "fee": "3000",
                    "recipient": _ALICE,
                    "deadline": "1700000000",
                    "amountIn": "1000000",
                    "amountOutMinimum": "0",
                    "sqrtPriceLimitX96": "0",
                },
            },
        ],
    },
}


def list_templates() -> list[str]:
    return sorted(EXAMPLE_TEMPLATES)


def get_template(slug: str) -> CallTemplate:
    """
    Return a copy of the built-in template registered under ``slug``.

    Raises:
        UnknownTemplateError: If no template has that slug.
    """
    try:
        return copy.deepcopy(EXAMPLE_TEMPLATES[slug])
    except KeyError:
        raise UnknownTemplateError(slug, list_templates()) from None
